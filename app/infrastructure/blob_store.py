"""Local disk storage for uploaded photos."""

import os
import uuid


class LocalBlobStore:
    """Writes files under UPLOAD_DIR and returns their public URL path."""

    def __init__(self, upload_dir: str, url_prefix: str):
        self.upload_dir = upload_dir
        self.url_prefix = url_prefix.rstrip("/")

    def save(self, filename: str, content: bytes) -> str:
        os.makedirs(self.upload_dir, exist_ok=True)
        safe_name = f"{uuid.uuid4().hex}_{os.path.basename(filename)}"
        file_path = os.path.join(self.upload_dir, safe_name)

        with open(file_path, "wb") as f:
            f.write(content)

        return f"{self.url_prefix}/{safe_name}"

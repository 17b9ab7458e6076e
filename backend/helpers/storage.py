import os
import time
import uuid

from werkzeug.utils import secure_filename

from errors import ValidationError

ALLOWED_RESUME_EXTENSIONS = {'.pdf', '.doc', '.docx'}


class LocalResumeStorage:
    """Writes uploaded resumes to a directory and hands back their public URL."""

    def __init__(self, folder, url_prefix='/api/uploads', max_bytes=5 * 1024 * 1024):
        self.folder = os.path.abspath(folder)
        self.url_prefix = url_prefix.rstrip('/')
        self.max_bytes = max_bytes

    def save(self, file_storage, subdir='resumes') -> str:
        if file_storage is None or not file_storage.filename:
            raise ValidationError("Resume file is required")

        filename = secure_filename(file_storage.filename)
        ext = os.path.splitext(filename)[1].lower()
        if ext not in ALLOWED_RESUME_EXTENSIONS:
            raise ValidationError("Invalid file type. Only PDF, DOC and DOCX files are allowed")

        content = file_storage.read()
        if not content:
            raise ValidationError("Empty file")
        if len(content) > self.max_bytes:
            raise ValidationError(f"File too large. Maximum size is {self.max_bytes // (1024 * 1024)}MB")

        target_dir = os.path.join(self.folder, subdir)
        os.makedirs(target_dir, exist_ok=True)
        stored_name = f"{int(time.time())}-{uuid.uuid4().hex[:8]}-{filename}"
        with open(os.path.join(target_dir, stored_name), 'wb') as fh:
            fh.write(content)
        return f"{self.url_prefix}/{subdir}/{stored_name}"

    def delete(self, url) -> bool:
        """Remove a file previously returned by ``save``; unknown URLs are ignored."""
        if not url or not url.startswith(self.url_prefix + '/'):
            return False
        path = os.path.abspath(os.path.join(self.folder, url[len(self.url_prefix) + 1:]))
        if not path.startswith(self.folder + os.sep) or not os.path.isfile(path):
            return False
        os.remove(path)
        return True

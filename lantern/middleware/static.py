import os

from flask import send_from_directory
from werkzeug.security import safe_join


class StaticFilesMiddleware:
    """Serves files from the ``public`` directory of each content root, first root wins."""

    def __init__(self, public_paths, max_age):
        self.public_paths = list(public_paths)
        self.max_age = max_age

    def handle(self, request):
        if request.method not in ('GET', 'HEAD'):
            return None

        relative = request.path.lstrip('/')
        if not relative:
            return None

        for public_path in self.public_paths:
            candidate = safe_join(public_path, relative)
            if candidate and os.path.isfile(candidate):
                return send_from_directory(public_path, relative, max_age=self.max_age)
        return None

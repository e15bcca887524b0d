from typing import Optional

import firebase_admin
from firebase_admin import credentials

APP_NAME = "fastnews"


class FirebaseContext:
    """Owns the firebase-admin App for this process; initialised on first use."""

    def __init__(self, credentials_path: Optional[str] = None):
        self.credentials_path = credentials_path
        self._app: Optional[firebase_admin.App] = None

    @property
    def app(self) -> firebase_admin.App:
        if self._app is None:
            if self.credentials_path:
                cred = credentials.Certificate(self.credentials_path)
            else:
                cred = credentials.ApplicationDefault()
            self._app = firebase_admin.initialize_app(cred, name=APP_NAME)
        return self._app

    def close(self) -> None:
        if self._app is not None:
            firebase_admin.delete_app(self._app)
            self._app = None

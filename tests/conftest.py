import pytest
from PySide6 import QtCore


@pytest.fixture(scope="session", autouse=True)
def qt_core_app():
    """One QCoreApplication for the whole run; session signals need no event loop."""
    app = QtCore.QCoreApplication.instance()
    if app is None:
        app = QtCore.QCoreApplication([])
    yield app

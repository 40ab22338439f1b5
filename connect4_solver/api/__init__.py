"""Optional local FastAPI server (loopback only)"""

from .server import APIServer, create_app
from .auth import TokenAuth
from .schemas import AnalyzeRequest, AnalyzeResponse, PlayRequest, PlayResponse

__all__ = [
    'APIServer',
    'create_app',
    'TokenAuth',
    'AnalyzeRequest',
    'AnalyzeResponse',
    'PlayRequest',
    'PlayResponse',
]

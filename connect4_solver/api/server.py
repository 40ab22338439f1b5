"""FastAPI server implementation"""

import asyncio
import logging
import socket
import time
from contextlib import asynccontextmanager
from typing import Dict

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from uvicorn import Config, Server

from .auth import RateLimiter, TokenAuth, create_request_guard
from .schemas import AnalyzeRequest, AnalyzeResponse, ErrorResponse, HealthResponse, PlayRequest, PlayResponse
from ..engine.game import Game
from ..engine.notation import moves_to_string, parse_moves, play_sequence
from ..engine.openings import default_opening_book, load_opening_book
from ..engine.position import WIDTH
from ..engine.search import SearchLimits, Searcher
from ..engine.solver import Solver
from ..logging_setup import log_event

API_VERSION = "1.0.0"

logger = logging.getLogger(__name__)


class APIServer:
    """Local API server (loopback only)"""

    def __init__(self, config: Dict):
        self.config = config
        self.start_time = time.time()
        api_cfg = config.get("api", {})
        self.token_auth = TokenAuth(api_cfg.get("token", ""))
        self.rate_limiter = RateLimiter(max_requests=int(api_cfg.get("rate_limit_rps", 10)), window_seconds=1.0)

        # Store token for client access
        if not api_cfg.get("token"):
            config.setdefault("api", {})["token"] = self.token_auth.token
            logger.info("Generated API token")

        eng = config.get("engine", {})
        self.book = None
        if eng.get("use_book", True):
            self.book = load_opening_book(eng["book_path"]) if eng.get("book_path") else default_opening_book()

        self.limits = SearchLimits.from_config(config)
        self.app = create_app(self)

    def new_solver(self) -> Solver:
        """A fresh solver per request; only the read-only book is shared."""
        return Solver.from_config(self.config, book=self.book)

    async def start(self, host: str = "127.0.0.1", port: int = 0):
        """Start the API server"""
        if port == 0:
            # Find available port
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            sock.bind((host, 0))
            port = sock.getsockname()[1]
            sock.close()

        config = Config(self.app, host=host, port=port, log_level="info", access_log=False)
        server = Server(config)
        logger.info("Starting API server on http://%s:%d", host, port)
        await server.serve()

    def get_uptime(self) -> float:
        return time.time() - self.start_time


def _analyze(api_server: APIServer, moves: str, weak: bool) -> AnalyzeResponse:
    position = play_sequence(moves)
    if position.is_game_over():
        raise ValueError("the game is over")
    result = Searcher(api_server.new_solver(), api_server.limits).analyze(position, weak=weak)
    return AnalyzeResponse(
        moves=moves_to_string(parse_moves(moves)),
        scores=result.scores,
        score=result.scores[result.best_column],
        best_column=result.best_column,
        exact=result.exact,
        depth=result.depth,
        nodes=result.nodes,
        time_ms=result.time_ms,
    )


def _play(moves: str, column: int) -> PlayResponse:
    game = Game()
    for col in parse_moves(moves):
        game.play(col)
    game.play(column)
    return PlayResponse(
        moves=moves_to_string(game.moves),
        status=game.status.value,
        winner=game.winner,
        winning_cells=[[c, r] for c, r in game.winning_cells],
        can_play=[not game.is_over() and game.position.can_play(c) for c in range(WIDTH)],
        label=game.label(),
    )


def create_app(api_server: APIServer) -> FastAPI:
    """Create FastAPI application"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("API server starting up")
        yield
        logger.info("API server shutting down")

    app = FastAPI(
        title="Connect-4 Solver API",
        description="Local API for Connect-4 position analysis",
        version=API_VERSION,
        docs_url="/docs" if api_server.config.get("debug") else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=r"http://(127\.0\.0\.1|localhost)(:\d+)?",
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    guard = create_request_guard(api_server.token_auth, api_server.rate_limiter)

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        return response

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint"""
        return HealthResponse(
            ok=True,
            version=API_VERSION,
            uptime_seconds=api_server.get_uptime(),
            book_depth=api_server.book.depth if api_server.book is not None else None,
        )

    @app.post("/analyze", response_model=AnalyzeResponse, dependencies=[Depends(guard)])
    async def analyze_position(request: AnalyzeRequest):
        """Score every column of a position"""
        weak = request.weak
        if weak is None:
            weak = bool(api_server.config.get("engine", {}).get("weak", False))
        try:
            # the search is CPU-bound, keep it off the event loop
            result = await asyncio.to_thread(_analyze, api_server, request.moves, weak)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        log_event("api", "analyze", moves=result.moves, weak=weak, nodes=result.nodes, time_ms=result.time_ms)
        return result

    @app.post("/play", response_model=PlayResponse, dependencies=[Depends(guard)])
    async def play_column(request: PlayRequest):
        """Play a column and report the game state"""
        try:
            return _play(request.moves, request.column)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=str(exc.detail), code=str(exc.status_code)).model_dump(),
            headers=exc.headers,
        )

    return app

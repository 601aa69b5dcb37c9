"""
Main FastAPI Application

FinSight API with all routes and error handlers registered.
"""

import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from finsight import __version__
from finsight.api.public import router as public_router
from finsight.config import settings
from finsight.exceptions import (
    FinSightError, InvalidInputError, NoDebtsError, SimulationDivergentError,
    UnclassifiableError, UserNotFoundError
)
from finsight.logging_setup import setup_logging

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)


# Create FastAPI app
app = FastAPI(
    title="FinSight API",
    description="Financial signals, personas and debt payoff planning",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(public_router)


# Health check endpoint
@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


# Error handlers
@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request, exc):
    """Handle rejected input."""
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid Input", "detail": exc.message}
    )


@app.exception_handler(UserNotFoundError)
async def user_not_found_handler(request, exc):
    """Handle user not found errors."""
    return JSONResponse(
        status_code=404,
        content={"error": "User Not Found", "detail": exc.message}
    )


@app.exception_handler(NoDebtsError)
async def no_debts_handler(request, exc):
    """Handle users without open debts."""
    return JSONResponse(
        status_code=404,
        content={"error": "No Debts", "detail": exc.message}
    )


@app.exception_handler(SimulationDivergentError)
async def simulation_divergent_handler(request, exc):
    """Handle payoff plans that cannot converge."""
    return JSONResponse(
        status_code=422,
        content={"error": "Simulation Divergent", "detail": exc.message, "strategy": exc.strategy}
    )


@app.exception_handler(UnclassifiableError)
async def unclassifiable_handler(request, exc):
    """Unclassified is a valid outcome, not a failure."""
    return JSONResponse(
        status_code=200,
        content={"primary": None, "secondary": [], "detail": exc.message}
    )


@app.exception_handler(FinSightError)
async def finsight_error_handler(request, exc):
    """Handle any other domain error."""
    logger.warning("Unhandled domain error", extra={'error': exc.message})
    return JSONResponse(
        status_code=400,
        content={"error": "Bad Request", "detail": exc.message}
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc):
    """Handle request validation errors."""
    return JSONResponse(
        status_code=422,
        content={"error": "Validation Error", "detail": exc.errors()}
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc):
    """Handle generic HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "HTTP Exception", "detail": exc.detail}
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    """Handle general exceptions."""
    logger.exception("Unhandled error", extra={'path': request.url.path})
    return JSONResponse(
        status_code=500,
        content={"error": "Internal Server Error", "detail": str(exc)}
    )

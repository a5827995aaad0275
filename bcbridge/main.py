"""
bcbridge Main module - command line interface and HTTP API
"""

import logging
from typing import Any, List, Optional
import time

import typer
import uvicorn
from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRouter
from pydantic import BaseModel, Field

from bcbridge.features import Feature, FeatureRegistry, OperationResult, handle_list_primitives
from bcbridge.primitives.bcmath.bridge import SIGNATURES, Operation
from bcbridge.version import get_version

# Module-level logger
logger = logging.getLogger("bcbridge.main")


# Create CLI app with Typer
app = typer.Typer(
    name="bcbridge",
    help="bcbridge - arbitrary-precision decimal arithmetic for scripts",
    add_completion=False,
)

# Create FastAPI app for API server
api_app = FastAPI(
    title="bcbridge API",
    description="API for running scripts and calling bcmath operations",
    version=get_version(),
)

# Add CORS middleware
api_app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API router for versioned endpoints
api_router = APIRouter(prefix="/api/v1")


# Request models
class RunRequest(BaseModel):
    program: str
    default_scale: Optional[int] = Field(default=None, ge=0)
    language: Optional[str] = None
    save_syntax: Optional[str] = None
    execute: Optional[bool] = True


class CallRequest(BaseModel):
    arguments: List[Any] = Field(default_factory=list)
    scale: Optional[int] = None
    default_scale: Optional[int] = Field(default=None, ge=0)
    language: Optional[str] = None


# ----------------- Helper Functions -----------------


class ElapsedMsFormatter(logging.Formatter):
    """Formatter that shows milliseconds since program start, right-aligned for up to 9999 seconds."""
    def __init__(self, fmt=None, datefmt=None, *args, **kwargs):
        super().__init__(fmt, datefmt, *args, **kwargs)
        self.start_time = time.monotonic()
        self.width = 8  # Enough for '9999000ms'

    def format(self, record):
        elapsed_ms = int((time.monotonic() - self.start_time) * 1000)
        if elapsed_ms < 10**7:  # up to 9999.999s
            elapsed = f"[{elapsed_ms:>{self.width}}ms]"
        else:
            elapsed = f"[{elapsed_ms}ms]"
        record.elapsed = elapsed
        return super().format(record)


VERBOSE_LEVEL = 15  # Between INFO (20) and DEBUG (10)
logging.addLevelName(VERBOSE_LEVEL, "VERBOSE")


def setup_logging(debug: bool = False, verbose: bool = False) -> None:
    """Set up logging configuration"""
    if debug:
        log_level = logging.DEBUG
    elif verbose:
        log_level = VERBOSE_LEVEL
    else:
        log_level = logging.INFO
    formatter = ElapsedMsFormatter('%(elapsed)s %(message)s')
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    root = logging.getLogger()
    root.handlers = []  # Remove any existing handlers
    root.addHandler(handler)
    root.setLevel(log_level)

    # Keep server access logs quiet unless debugging
    for name in ("uvicorn.access", "asyncio"):
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)


def _feature_or_exit(feature_name: str) -> Feature:
    feature = FeatureRegistry.get_feature(feature_name)
    if not feature:
        logger.error("Unknown feature: %s", feature_name)
        raise typer.Exit(code=1)
    return feature


def _handle_cli_result(feature_name: str, result: OperationResult) -> Any:
    if not result.success:
        logger.error("Operation failed: %s", result.error or "Unknown error")
        raise typer.Exit(code=1)
    logger.log(VERBOSE_LEVEL, "Feature %s completed", feature_name)
    return result.data


def _api_result(result: OperationResult) -> Any:
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=result.error or "An error occurred",
        )
    return result.data


# ----------------- CLI Commands -----------------


@app.command()
def version() -> None:
    """Show the bcbridge version"""
    setup_logging(False)
    data = _handle_cli_result("version", _feature_or_exit("version").handler())
    logger.info("bcbridge version: %s", data.get("version", "unknown"))


@app.command()
def run(
    filename: str = typer.Argument(..., help="Script file"),
    scale: Optional[int] = typer.Option(
        None, "--scale", min=0, help="Ambient default scale for calls that omit one"
    ),
    language: Optional[str] = typer.Option(
        None, "--language", help="Target language code for registered interfaces"
    ),
    save_syntax: Optional[str] = typer.Option(
        None, help="Save the AST in text format"
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug mode"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose logging (between info and debug)"),
) -> None:
    """Run a script"""
    setup_logging(debug, verbose)

    logger.log(VERBOSE_LEVEL, "bcbridge version: %s", get_version())

    try:
        with open(filename, "r") as f:
            program = f.read()
    except FileNotFoundError:
        logger.error("File not found: %s", filename)
        raise typer.Exit(code=1)
    except OSError as e:
        logger.error("Error reading file %s: %s", filename, str(e))
        raise typer.Exit(code=1)

    feature = _feature_or_exit("run")
    data = _handle_cli_result(
        "run",
        feature.handler(
            program=program,
            filename=filename,
            default_scale=scale,
            language=language,
            save_syntax=save_syntax,
        ),
    )
    for item in data.get("prints", []):
        print(f"{item['name']}={item['value']}")
    for message in data.get("messages", []):
        logger.info("  %s", message)


@app.command("list-primitives")
def list_primitives(
    namespace: Optional[str] = typer.Argument(None, help="Namespace to filter primitives (optional)")
) -> None:
    """List available primitives"""
    setup_logging(False)

    result = handle_list_primitives(namespace=namespace)
    if not result.success:
        logger.error(f"Error: {result.error}")
        raise typer.Exit(code=1)

    data = result.data

    if data.get('namespace_filter'):
        print(f"Primitives in namespace '{data['namespace_filter']}':")
    else:
        print("All available primitives:")

    primitives = data.get('primitives', {})
    if not primitives:
        print("  No primitives found.")
    else:
        for name, description in sorted(primitives.items()):
            print(f"  {name:<30} {description}")

    if not data.get('namespace_filter'):
        namespaces = data.get('namespaces', [])
        if namespaces:
            print(f"\nAvailable namespaces: {', '.join(sorted(namespaces))}")
            print("Use 'bcbridge list-primitives <namespace>' to filter by namespace.")


@app.command()
def call(
    operation: str = typer.Argument(..., help="bcmath operation, e.g. add or powmod"),
    arguments: List[str] = typer.Argument(
        ..., help="Operands, in order; give the scale with --scale, not as an operand"
    ),
    scale: Optional[int] = typer.Option(None, "--scale", help="Explicit scale for this call"),
    default_scale: Optional[int] = typer.Option(
        None, "--default-scale", min=0, help="Ambient default scale"
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug mode"),
) -> None:
    """Call one bcmath operation and print its result"""
    setup_logging(debug)

    if operation in {member.value for member in Operation}:
        operand_count = len(SIGNATURES[Operation(operation)].operands)
        if len(arguments) > operand_count:
            logger.error(
                "%s takes %d operands, got %d; pass the scale with --scale",
                operation,
                operand_count,
                len(arguments),
            )
            raise typer.Exit(code=1)

    feature = _feature_or_exit("call")
    data = _handle_cli_result(
        "call",
        feature.handler(
            operation=operation,
            arguments=arguments,
            scale=scale,
            default_scale=default_scale,
        ),
    )
    for value in data["result"]:
        print(value)


# ----------------- API Endpoints -----------------


@api_router.get("/version")
async def get_version_endpoint():
    """Get bcbridge version"""
    return _api_result(FeatureRegistry.get_feature("version").handler())


@api_router.post("/run")
async def run_program_endpoint(request: RunRequest):
    """Run a script and return what it printed"""
    return _api_result(FeatureRegistry.get_feature("run").handler(**request.model_dump()))


@api_router.get("/list-primitives")
async def list_primitives_endpoint(namespace: Optional[str] = None):
    """List available primitives"""
    return _api_result(handle_list_primitives(namespace=namespace))


@api_router.post("/bcmath/{operation}")
async def call_operation_endpoint(operation: str, request: CallRequest):
    """Call one bcmath operation"""
    result = FeatureRegistry.get_feature("call").handler(
        operation=operation, **request.model_dump()
    )
    if not result.success and (result.error or "").startswith("Unknown operation"):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.error)
    return _api_result(result)


# Include the router in the FastAPI app
api_app.include_router(api_router)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Host to bind the API server"),
    port: int = typer.Option(8000, help="Port to bind the API server"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug mode"),
):
    """Start the bcbridge API server"""
    setup_logging(debug)

    logger.info(
        f"Starting bcbridge API server version {get_version()} on {host}:{port}"
    )
    logger.info(f"API documentation available at http://{host}:{port}/docs")

    uvicorn.run(api_app, host=host, port=port)


if __name__ == "__main__":
    app()

import asyncio
import typer
import sys
if sys.platform == "win32":
    # asyncpg не работает с ProactorEventLoop по умолчанию в Windows.
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
import uvicorn

from streaming_orders.config import get_settings
from streaming_orders.db.base import create_schema
from streaming_orders.exceptions import StorageError
from streaming_orders.logging import configure
from streaming_orders.repositories import PostgresOrderStore, create_engine_from_config
from streaming_orders.server import create_app
from streaming_orders.utils.cli_utils import get_rich_console, status_mark
from sqlalchemy.exc import SQLAlchemyError


app = typer.Typer(help="CLI for streaming-orders management.")
console = get_rich_console()


@app.command()
def init():
    """
    Creates the orders, subscriptions and order_cancellations tables.
    """
    console.rule("[bold cyan]Database Initialization[/bold cyan]")

    async def _create_tables():
        engine = create_engine_from_config(get_settings().database)
        try:
            await create_schema(engine)
        finally:
            await engine.dispose()

    with console.status("Creating PostgreSQL tables...", spinner="dots"):
        try:
            asyncio.run(_create_tables())
        except (SQLAlchemyError, OSError) as e:
            console.print(f"{status_mark(False)} Database initialization FAILED: {e}")
            raise typer.Exit(code=1)

    console.print(f"{status_mark(True)} Database tables created successfully.")


@app.command()
def check():
    """Checks connectivity to PostgreSQL."""
    console.rule("[bold cyan]Connection Check[/bold cyan]")

    async def _check():
        store = PostgresOrderStore.from_config(get_settings().database)
        try:
            await store.check_connection()
        finally:
            await store.aclose()

    try:
        asyncio.run(_check())
    except StorageError as e:
        console.print(f"{status_mark(False)} PostgreSQL connection: FAILED ({e.cause})")
        raise typer.Exit(code=1)
    console.print(f"{status_mark(True)} PostgreSQL connection: OK")


@app.command()
def serve(
    host: str = typer.Option(None, help="Bind host (default: HTTP_HOST)."),
    port: int = typer.Option(None, help="Bind port (default: HTTP_PORT)."),
):
    """Runs the HTTP API."""
    settings = get_settings()
    configure(settings.log_level)
    server = settings.server
    uvicorn.run(
        create_app(config=settings.to_app_config()),
        host=host or server.host,
        port=port or server.port,
        log_config=None,
    )


if __name__ == "__main__":
    app()

import click
from marketplace.core.logging import get_logger
import uvicorn

logger = get_logger(__name__)


@click.group()
def cli():
    """Marketplace offers CLI"""
    pass


@cli.command()
@click.option("--host", default="0.0.0.0")
@click.option("--port", default=8000)
@click.option("--workers", default=1)
@click.option("--production", is_flag=True, help="Run in production mode")
def serve(host, port, workers, production):
    """Start the API server"""
    reload = not production  # Auto-reload unless production mode

    uvicorn.run(
        "marketplace.api.web_app:app",
        host=host,
        port=port,
        reload=reload,
        workers=workers if production else 1,
        log_level="info" if production else "debug",
    )


@cli.command()
@click.option("--sync", "run_sync", is_flag=True, help="Reindex in this process instead of queueing a task")
@click.option("--batch-size", default=500, help="Offers loaded per batch")
def reindex(run_sync, batch_size):
    """Rebuild the offer search index"""
    try:
        if run_sync:
            from marketplace.db.base import SessionLocal
            from marketplace.worker.tasks.search_index import reindex_all_offers

            db_session = SessionLocal()
            try:
                written = reindex_all_offers(db_session, batch_size=batch_size)
            finally:
                db_session.close()
            click.echo(f"Indexed {written} active offers")
            return

        from marketplace.worker.tasks.search_index import reindex_offers

        result = reindex_offers.delay(batch_size)
        click.echo(f"Task submitted: {result.id}")

    except Exception as e:
        logger.error(f"Reindex failed: {e}")
        click.echo(f"Error: {str(e)}")


@cli.command()
@click.argument("offer_ids", nargs=-1, type=int, required=True)
def sync_offers(offer_ids):
    """Queue a search index resync for specific offers"""
    from marketplace.worker.tasks.search_index import sync_offers as sync_offers_task

    result = sync_offers_task.delay(list(offer_ids))
    click.echo(f"Task submitted: {result.id}")


if __name__ == "__main__":
    cli()

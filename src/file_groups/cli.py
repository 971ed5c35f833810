# cli.py
import click
import logging
from database.mongo_adapter import get_mongo_adapter
from file_groups.config.settings import get_settings, configure_logging

# Configure logging
logger = logging.getLogger(__name__)

@click.group()
def cli():
    """CLI commands for the File Groups API"""
    configure_logging(get_settings())

@cli.command()
def show_config():
    """Show current configuration"""
    settings = get_settings()

    click.echo("Current Configuration:")
    click.echo(f"  App Name: {settings.app_name}")
    click.echo(f"  MongoDB URI: {settings.mongodb_uri}")
    click.echo(f"  MongoDB Database: {settings.mongodb_database or '(from URI)'}")
    click.echo(f"  Files Bucket: {settings.files_bucket_name}")
    click.echo(f"  Groups Collection: {settings.groups_collection}")
    click.echo(f"  Strict Uploads: {settings.strict_uploads}")
    click.echo(f"  Log Level: {settings.log_level}")

@cli.command()
def init_db():
    """Create the indexes on the groups collection"""
    adapter = get_mongo_adapter(get_settings())
    try:
        adapter.init_collections()
        click.echo(f"Indexes ready on {adapter.database_name}.{adapter.groups_collection_name}")
    finally:
        adapter.close()

@cli.command()
@click.option("--host", default="0.0.0.0", help="Bind address")
@click.option("--port", default=8000, type=int, help="Bind port")
def serve(host, port):
    """Run the API with uvicorn"""
    import uvicorn
    from file_groups.main import create_app

    uvicorn.run(create_app(get_settings()), host=host, port=port)

if __name__ == "__main__":
    cli()

"""CLI command to start the WeatherMaster API server."""

import logging
import sys

import click
import uvicorn
from pydantic import ValidationError

from ..api.rest import create_app
from ..errors import WeatherMasterError
from ..model.regions import load_region_templates
from ..model.settings import load_settings
from ..service import WeatherService

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@click.command()
@click.option(
    "--host",
    default="0.0.0.0",
    help="Host to bind to (default: 0.0.0.0)",
)
@click.option(
    "--port",
    default=8080,
    type=int,
    help="Port to bind to (default: 8080)",
)
@click.option(
    "--regions",
    type=click.Path(exists=True),
    help="Extra region templates YAML, merged over the packaged ones",
)
@click.option(
    "--engine-config",
    type=click.Path(exists=True),
    help="Engine settings YAML (default: packaged engine.yaml)",
)
@click.option(
    "--debug",
    is_flag=True,
    help="Attach debug details to weather snapshots",
)
def main(host, port, regions, engine_config, debug):
    """Start the WeatherMaster API server.

    Examples:
        # Serve packaged regions
        weathermaster-serve

        # Add campaign regions
        weathermaster-serve --regions my_regions.yaml --port 9000
    """
    try:
        templates = load_region_templates()
        if regions:
            click.echo(f"Loading regions from: {regions}")
            templates.update(load_region_templates(regions))
        service = WeatherService(settings=load_settings(engine_config), regions=templates, debug=debug)
    except (WeatherMasterError, ValidationError) as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        logger.exception("Configuration error")
        sys.exit(1)

    click.echo(f"Serving {len(service.regions)} regions")
    click.echo(f"   REST API:      http://{host}:{port}/api/")
    click.echo(f"   Health Check:  http://{host}:{port}/health")
    click.echo(f"   API Docs:      http://{host}:{port}/docs")

    try:
        uvicorn.run(create_app(service), host=host, port=port, log_level="info")
    except KeyboardInterrupt:
        click.echo("\nShutting down...")


if __name__ == "__main__":
    main()

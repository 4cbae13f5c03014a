import click
from flask.cli import with_appcontext
import pandas as pd

from src.logger import get_logger
from locations.location import import_countries, import_states, import_cities

logger = get_logger("locations")


@click.command("import-locations")
@click.option("--countries", "countries_csv", type=click.Path(exists=True, dir_okay=False),
              help="CSV with name, iso_code, flag, phonecode, currency, latitude, longitude")
@click.option("--states", "states_csv", type=click.Path(exists=True, dir_okay=False),
              help="CSV with name, iso_code, country_code")
@click.option("--cities", "cities_csv", type=click.Path(exists=True, dir_okay=False),
              help="CSV with name, state_code, country_code")
@with_appcontext
def import_locations_command(countries_csv, states_csv, cities_csv):
    """Load country, state and city reference data from CSV files."""
    if not any([countries_csv, states_csv, cities_csv]):
        raise click.UsageError("Pass at least one of --countries, --states or --cities")

    if countries_csv:
        added = import_countries(pd.read_csv(countries_csv, dtype=str))
        logger.info("Imported %s countries from %s", added, countries_csv)
        click.echo(f"Countries added: {added}")
    if states_csv:
        added = import_states(pd.read_csv(states_csv, dtype=str))
        logger.info("Imported %s states from %s", added, states_csv)
        click.echo(f"States added: {added}")
    if cities_csv:
        added = import_cities(pd.read_csv(cities_csv, dtype=str))
        logger.info("Imported %s cities from %s", added, cities_csv)
        click.echo(f"Cities added: {added}")

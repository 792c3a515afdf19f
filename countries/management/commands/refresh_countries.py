from django.core.management.base import BaseCommand, CommandError

from countries.exceptions import CountryError
from countries.services import build_refresh_service
from countries.utils import make_rng


class Command(BaseCommand):
    help = "Fetch countries and exchange rates and replace the stored snapshot."

    def add_arguments(self, parser):
        parser.add_argument(
            "--seed", type=int, default=None,
            help="Seed for the GDP multiplier, for reproducible runs.",
        )

    def handle(self, *args, **options):
        service = build_refresh_service(rng=make_rng(options["seed"]))
        try:
            result = service.refresh()
        except CountryError as exc:
            raise CommandError(f"{exc.message}: {exc.details}") from exc

        self.stdout.write(self.style.SUCCESS(
            f"{result.message}: {result.total_countries} countries, "
            f"{result.skipped} skipped, last refreshed at {result.last_refreshed_at.isoformat()}"
        ))
        if not result.image_generated:
            self.stdout.write(self.style.WARNING("Summary image was not generated"))

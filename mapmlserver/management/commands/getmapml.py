"""Generate the MapML document of a layer, without running the web server."""

from __future__ import annotations

from argparse import ArgumentTypeError

from django.core.exceptions import ImproperlyConfigured
from django.core.management import BaseCommand, CommandError, CommandParser
from django.test import RequestFactory

from mapmlserver import conf
from mapmlserver.exceptions import MapMLException
from mapmlserver.mapfile import load_map_file
from mapmlserver.output import MAPML_MODES
from mapmlserver.views import MapMLView


def _parse_map_file(value):
    try:
        return load_map_file(value)
    except ImproperlyConfigured as e:
        raise ArgumentTypeError(str(e)) from e


class CommandMapMLView(MapMLView):
    """The view, with exceptions raised to the command instead of rendered as XML."""

    server_url = "http://localhost/"

    def handle_exception(self, exc):
        return None


class Command(BaseCommand):
    """Print the MapML document for a layer of a map file."""

    help = (
        "Generate the MapML document of a layer in a JSON map file. This can be done using:"
        "  manage.py getmapml city.json --layer=roads --projection=OSMTILE --mode=tile"
    )

    def add_arguments(self, parser: CommandParser):
        parser.add_argument(
            "map_file", metavar="MAPFILE", type=_parse_map_file, help="The JSON map file."
        )
        parser.add_argument(
            "-l",
            "--layer",
            required=True,
            help="The layer, group or map name to describe.",
        )
        parser.add_argument(
            "-p",
            "--projection",
            default=conf.MAPML_DEFAULT_PROJECTION,
            help="The MapML projection, e.g. OSMTILE, CBMTILE, APSTILE or WGS84.",
        )
        parser.add_argument("-s", "--style", default="", help="The style to use in the links.")
        parser.add_argument(
            "-m",
            "--mode",
            type=str.lower,
            choices=sorted(MAPML_MODES),
            help="The output mode, defaults to the mapml_wms_mode metadata or 'image'.",
        )
        parser.add_argument(
            "--url",
            default=CommandMapMLView.server_url,
            help=(
                "The URL of the server, used for the links when the map has"
                " no wms_onlineresource metadata."
            ),
        )
        parser.add_argument(
            "--service",
            default="WMS",
            type=str.upper,
            choices=sorted(MapMLView.accept_operations),
            help="The service that the alternate projection links use.",
        )

    def handle(self, *args, **options):
        params = {
            "SERVICE": options["service"],
            "REQUEST": "GetMapML",
            "LAYER": options["layer"],
            "PROJECTION": options["projection"],
            "STYLE": options["style"],
        }
        if options["mode"]:
            params["MAPML_MODE"] = options["mode"]

        view = CommandMapMLView.as_view(
            map_definition=options["map_file"], server_url=options["url"]
        )
        try:
            response = view(RequestFactory().get("/", params))
        except MapMLException as e:
            raise CommandError(e.text) from e

        self.stdout.write(response.content.decode(), ending="")

"""CLI entrypoint for buildupdate.
"""
import argparse
import logging
import sys

from buildupdate.build_update import BuildUpdater
from buildupdate.buildupdate_config import (
    DEFAULT_SCRIPT_FILE,
    Platform,
    resolve_script_config,
)
from buildupdate.buildupdate_exceptions import BuildUpdateException
from buildupdate.buildupdate_logger import BuildUpdateLogger
from buildupdate.script_backends import script_backend_for_path
from buildupdate.script_document import ScriptDocument
from buildupdate.teamcity import TeamCityClient


def _build_parser():
    p = argparse.ArgumentParser(
        prog="buildupdate",
        description="Generate a script that fetches the artifact dependencies of a TeamCity build.",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="run verbosely")
    p.add_argument("-d", "--download_app", choices=["curl", "wget"],
                   help="app the script uses to download the content")
    p.add_argument("-s", "--server", help="TeamCity server hostname")
    p.add_argument("-p", "--project", help="project in TeamCity")
    p.add_argument("-b", "--build", help="build within the project in TeamCity")
    p.add_argument("-r", "--root_dir", help="root dir the script's commands run in")
    p.add_argument("-t", "--build_type", help="build type id in TeamCity")
    p.add_argument("-g", "--build_tag", help="use the dependencies of the build with this tag")
    # The script file also decides the dialect and holds the persisted options
    p.add_argument("-f", "--file", default=DEFAULT_SCRIPT_FILE,
                   help=f"script file to update (default: {DEFAULT_SCRIPT_FILE})")
    return p


def cli_values(args: argparse.Namespace) -> dict:
    """Configuration values given on the command line; None means not given."""
    return {
        "server": args.server,
        "project": args.project,
        "build": args.build,
        "build_type": args.build_type,
        "root_dir": args.root_dir,
        "download_app": args.download_app,
        "build_tag": args.build_tag,
    }


def main(argv=None):
    argv = argv if argv is not None else sys.argv[1:]
    args = _build_parser().parse_args(argv)

    logging.basicConfig(stream=sys.stderr, format="%(levelname)s %(message)s")
    logger = BuildUpdateLogger()
    logger.set_verbose(args.verbose)

    try:
        platform = Platform.current()
        persisted = ScriptDocument(args.file, script_backend_for_path(args.file), logger).load()
        config = resolve_script_config(persisted, cli_values(args), platform, logger)
        logger.log(f"Options: {config.model_dump(mode='json')}", logging.DEBUG)

        backend = script_backend_for_path(args.file, config.effective("download_app"))
        document = ScriptDocument(args.file, backend, logger)
        with TeamCityClient(config.effective("server"), logger) as client:
            BuildUpdater(config, client, logger).update(document)
    except BuildUpdateException as e:
        logger.log(e.message, logging.ERROR)
        return 1
    return 0

"""upstrap command line module."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Mapping, Optional

from .config import UpConfig, default_config_path
from .exceptions import UpstrapError
from .interpolation import expand_tilde
from .log import configure_logging
from .sync import DEFAULT_BACKUP_DIR, DEFAULT_FROM_DIR, DEFAULT_TO_DIR, LinkConfig, SyncReport, run
from .utils import dump_yaml

logger = logging.getLogger(__name__)


class UpParser:
    """Main upstrap command line parser."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None, home_dir: Optional[str] = None):
        """Initialize upstrap parser.

        Args:
            environ: Process environment for inherited variables  # (defaults to os.environ)
            home_dir: Home directory used for `~`  # (defaults to the user's home)
        """
        self.environ = environ
        self.home_dir = home_dir

    def parse_args(self, args: Optional[List[str]] = None) -> argparse.Namespace:
        """Parse command line arguments.

        Args:
            args: Command line arguments (defaults to sys.argv[1:])

        Returns:
            Parsed arguments namespace
        """
        parser = argparse.ArgumentParser(prog="upstrap", description="Bootstrap your environment.")
        parser.add_argument("--log-level", default=None, help="Log level (defaults to $UPSTRAP_LOG or INFO).")
        parser.add_argument("--log-file", default=None, help="Also write logs to this file.")
        subparsers = parser.add_subparsers(dest="command", required=True)

        link = subparsers.add_parser("link", help="Symlink a dotfiles directory into a target directory.")
        link.add_argument("--from-dir", default=DEFAULT_FROM_DIR, help="Directory to link from.")
        link.add_argument("--to-dir", default=DEFAULT_TO_DIR, help="Directory to create links in.")
        link.add_argument("--backup-dir", default=DEFAULT_BACKUP_DIR, help="Where overwritten files are moved.")
        link.add_argument("--exclude", nargs="*", default=[], help="Glob patterns of relative paths to skip.")

        for name, help_text in (
            ("run", "Resolve the config env and run the link task."),
            ("env", "Print the resolved env as YAML."),
        ):
            sub = subparsers.add_parser(name, help=help_text)
            sub.add_argument(
                "configs",
                nargs="*",
                help="YAML configuration file or overrides in format <key path>=<value in yaml>.",
            )

        return parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """Parse arguments, run the selected command and return the exit code."""
        parsed_args = self.parse_args(args)
        configure_logging(parsed_args.log_level, parsed_args.log_file)

        try:
            if parsed_args.command == "link":
                self._run_link(parsed_args)
            elif parsed_args.command == "run":
                self._run_config(parsed_args)
            elif parsed_args.command == "env":
                self._print_env(parsed_args)
        except UpstrapError as e:
            logger.error("%s", e)
            return 1
        return 0

    def _run_link(self, args: argparse.Namespace) -> SyncReport:
        # Only `~` is expanded here; explicit arguments are already expanded by the shell.
        config = LinkConfig(
            from_dir=expand_tilde(args.from_dir, self.home_dir),
            to_dir=expand_tilde(args.to_dir, self.home_dir),
            backup_dir=expand_tilde(args.backup_dir, self.home_dir),
            exclude=args.exclude,
        )
        return self._link(config)

    def _run_config(self, args: argparse.Namespace) -> SyncReport:
        config = self._load_config(args.configs)
        env = config.resolve_env(environ=self.environ, home_dir=self.home_dir)
        return self._link(config.link_config(env, home_dir=self.home_dir))

    def _print_env(self, args: argparse.Namespace) -> None:
        config = self._load_config(args.configs)
        env = config.resolve_env(environ=self.environ, home_dir=self.home_dir)
        sys.stdout.write(dump_yaml(env))

    def _load_config(self, sources: List[str]) -> UpConfig:
        if not sources:
            sources = [str(default_config_path(self.environ))]
        logger.debug("Config sources: %s", sources)
        return UpConfig.from_sources(sources)

    def _link(self, config: LinkConfig) -> SyncReport:
        report = run(config)
        logger.info(
            "Linked %d entries (%d already linked, %d backed up).",
            len(report.created),
            len(report.already_linked),
            len(report.backups),
        )
        if report.backups:
            logger.info("Backups taken, check %s", Path(config.backup_dir))
        return report


def main(args: Optional[List[str]] = None) -> int:
    """Console entry point."""
    return UpParser().run(args)


if __name__ == "__main__":
    sys.exit(main())

import argparse

from .. import sys_info


def run(argv=None):
    """Run the sys_info command-line helper.

    Prints system, display and dependency information, the first thing to
    attach to a report about a preview window that does not open.
    """
    parser = argparse.ArgumentParser(
        prog=f"{__package__.split('.')[0]}-sys_info",
        description="Print platform, display and dependency information.",
    )
    parser.add_argument(
        "--developer",
        help="also list the test dependencies",
        action="store_true",
    )
    args = parser.parse_args(argv)

    sys_info(developer=args.developer)

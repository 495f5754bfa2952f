import sys

from caseforge.cli import run_cli

sys.exit(run_cli())

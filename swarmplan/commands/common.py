import json
import logging

import typer

from swarmplan.modules.swarm.errors import SwarmPlanError

logger = logging.getLogger("swarmplan.cli")


def fail(error: SwarmPlanError, as_json: bool = False):
    """Report a swarmplan error and exit with its exit code."""
    if as_json:
        typer.echo(json.dumps(error.to_dict(), indent=2))
    if error.kind == "planning":
        logger.error(f"❌ Planning failed, fix the cluster definition: {error}")
    else:
        logger.error(f"❌ Execution failed, retry or escalate: {error}")
    raise typer.Exit(code=error.exit_code)

import logging
from pathlib import Path
from typing import Optional

import typer

from swarmplan.config import Config
from swarmplan.logging import setup_logger
from swarmplan.modules.swarm import Environment, SwarmPlanError, load_spec, plan
from swarmplan.modules.swarm.executor import AnsibleExecutor
from swarmplan.modules.swarm.reconcile import Reconciler
from swarmplan.modules.swarm.render import write_artifacts
from swarmplan.registry import state_path
from .common import fail

app = typer.Typer()


@app.command("run")
def run_reconcile(
    file: str = typer.Option(..., "--file", "-f", help="Cluster definition YAML"),
    bastion: str = typer.Option(Config.BASTION_IP or None, "--bastion", help="Bastion public IP"),
    environment: Optional[Environment] = typer.Option(None, help="Target environment (default: SWARM_ENVIRONMENT)"),
    force: bool = typer.Option(False, "--force", help="Re-run steps already recorded as done"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print commands without running them"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    output_dir: str = typer.Option(Config.OUTPUT_DIR, help="Where rendered artifacts live"),
):
    """Initialize and join the swarm described by a cluster file."""
    if environment is None:
        try:
            environment = Environment(Config.ENVIRONMENT)
        except ValueError:
            raise typer.BadParameter(f"❌ SWARM_ENVIRONMENT='{Config.ENVIRONMENT}' is not production or staging")
    if verbose:
        setup_logger("swarmplan", logging.DEBUG)
    if not dry_run:
        Config.BASTION_IP = bastion or Config.BASTION_IP
        try:
            Config.validate()
        except ValueError as e:
            raise typer.BadParameter(f"❌ {e} (pass --bastion or set BASTION_IP)")

    try:
        cluster = plan(load_spec(file, environment.value))
        write_artifacts(
            cluster,
            output_dir,
            public_ips={cluster.bastion.name: bastion} if bastion else {},
            ssh_user=Config.SSH_USER,
            ssh_key=Config.SSH_KEY,
            dry_run=dry_run,
        )
        inventory = Path(output_dir) / f"hosts-{cluster.spec.name}.ini"
        executor = None if dry_run else AnsibleExecutor(str(inventory), timeout=Config.SSH_TIMEOUT * 6)
        result = Reconciler(
            cluster,
            executor,
            state_path(cluster.spec.name, environment.value),
            force=force,
            dry_run=dry_run,
        ).run()
    except SwarmPlanError as e:
        fail(e)

    typer.echo(f"executed={len(result.executed)} skipped={len(result.skipped)} verified={result.verified}")

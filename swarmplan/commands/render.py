import typer

from swarmplan.config import Config
from swarmplan.modules.swarm import PlanningError, load_spec, plan
from swarmplan.modules.swarm.render import write_artifacts
from .common import fail

app = typer.Typer()


@app.command("artifacts")
def render_artifacts_cmd(
    file: str = typer.Option(..., "--file", "-f", help="Cluster definition YAML"),
    output_dir: str = typer.Option(Config.OUTPUT_DIR, help="Where to write the artifacts"),
    bastion: str = typer.Option(Config.BASTION_IP or None, "--bastion", help="Bastion public IP"),
    environment: str = typer.Option(None, help="Override environment (production|staging)"),
    ssh_user: str = typer.Option(Config.SSH_USER, help="SSH user for the inventory"),
    ssh_key: str = typer.Option(Config.SSH_KEY, help="SSH private key for the inventory"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be written"),
):
    """Write inventory, group_vars and Hetzner manifests for a cluster."""
    try:
        cluster = plan(load_spec(file, environment))
    except PlanningError as e:
        fail(e)

    public_ips = {cluster.bastion.name: bastion} if bastion else {}
    paths = write_artifacts(
        cluster,
        output_dir,
        public_ips=public_ips,
        ssh_user=ssh_user,
        ssh_key=ssh_key,
        dry_run=dry_run,
    )
    for path in paths:
        typer.echo(str(path))

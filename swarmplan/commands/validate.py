import typer

from swarmplan.modules.swarm import PlanningError, load_spec, plan
from .common import fail

app = typer.Typer()


@app.command("cluster")
def validate_cluster(
    file: str = typer.Option(..., "--file", "-f", help="Cluster definition YAML"),
    as_json: bool = typer.Option(False, "--json", help="Print errors as JSON"),
):
    """Validate a cluster definition and check that it can be planned."""
    typer.echo(f"🔍 Validating cluster: {file}")
    try:
        cluster = plan(load_spec(file))
    except PlanningError as e:
        fail(e, as_json)
    typer.echo(f"✅ {cluster.spec.name} is valid ({len(cluster.nodes)} nodes)")

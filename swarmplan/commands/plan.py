import typer

from swarmplan.modules.swarm import Environment, PlanningError, load_spec, plan
from swarmplan.modules.swarm.steps import LabelNode
from .common import fail

app = typer.Typer()


@app.command("show")
def show_plan(
    file: str = typer.Option(..., "--file", "-f", help="Cluster definition YAML"),
    environment: str = typer.Option(None, help="Override environment (production|staging)"),
    as_json: bool = typer.Option(False, "--json", help="Print the plan as JSON"),
):
    """Print the derived cluster layout."""
    try:
        cluster = plan(load_spec(file, environment))
    except PlanningError as e:
        fail(e, as_json)

    if as_json:
        typer.echo(cluster.to_json())
        return

    spec = cluster.spec
    typer.echo(f"Cluster: {spec.name} ({Environment(spec.environment).value})")
    typer.echo(f"Primary manager: {cluster.primary_manager.name} ({cluster.primary_manager.private_ip})")
    typer.echo(f"Quorum tolerance: {cluster.quorum_tolerance}")
    typer.echo(f"Fingerprint: {cluster.fingerprint()}")
    typer.echo("")
    typer.echo(f"{'NAME':<32} {'ROLE':<8} {'PRIVATE IP':<14} {'PUBLIC':<7} FIREWALL")
    for node in cluster.nodes:
        public = "yes" if node.has_public_ip else "no"
        typer.echo(
            f"{node.name:<32} {node.role.value:<8} {node.private_ip:<14} {public:<7} "
            f"{','.join(node.firewall_rules)}"
        )
    typer.echo("")
    typer.echo("Join steps:")
    for number, step in enumerate(cluster.steps, start=1):
        suffix = f" (on {step.target})" if isinstance(step, LabelNode) else ""
        typer.echo(f"  {number:>2}. {step.key}{suffix}")

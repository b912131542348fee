import typer
import logging
import sys
from swarmplan.commands import plan, render, reconcile, validate
from swarmplan.logging import setup_logger

app = typer.Typer()

# Global debug flag
debug_mode = False

# Configure logging
def setup_logging(debug: bool = False):
    """Configure logging based on debug mode."""
    log_level = logging.DEBUG if debug else logging.INFO
    setup_logger("swarmplan", log_level)
    # ansible-runner is chatty at debug level
    if not debug:
        logging.getLogger('ansible_runner').setLevel(logging.WARNING)

# Add all command groups
app.add_typer(plan.app, name="plan")
app.add_typer(render.app, name="render")
app.add_typer(reconcile.app, name="reconcile")
app.add_typer(validate.app, name="validate")

# Global options callback
@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
):
    """swarmplan - Docker Swarm topology planner."""
    global debug_mode
    debug_mode = debug
    setup_logging(debug)
    if debug:
        logging.getLogger("swarmplan").debug("Debug mode enabled")

if __name__ == "__main__":
    try:
        app()
    except Exception as e:
        if debug_mode:
            import traceback
            logging.error(f"Unhandled exception: {e}\n{traceback.format_exc()}")
        else:
            logging.error(f"Error: {e}")
        sys.exit(1)

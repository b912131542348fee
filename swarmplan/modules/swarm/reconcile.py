"""
Replays a plan's join steps against real hosts.

Every run first checks that all planned hosts are reachable, then executes
the join steps and finally compares the swarm's node list with the plan.
Steps recorded as completed in the state file are skipped, every other step
is retried with exponential backoff. The first step that keeps failing
aborts the run with ExecutionError; progress made up to that point is kept
so the next run resumes from there.
"""
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List

from ...registry import load_state, save_state
from ...utils import RetryError, redact_sensitive_data, retry
from .errors import ExecutionError
from .models import ClusterPlan, SwarmMembership
from .steps import Step

logger = logging.getLogger("swarmplan.reconcile")

RETRYABLE = (RuntimeError, OSError)

NODE_LIST_COMMAND = "docker node ls --format '{{.Hostname}} {{.ManagerStatus}}'"


@dataclass
class ReconcileResult:
    fingerprint: str
    executed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    dry_run: bool = False
    verified: bool = False


def parse_node_list(output: str) -> Dict[str, str]:
    """hostname -> manager status ('' for workers) from NODE_LIST_COMMAND output."""
    nodes = {}
    for line in output.splitlines():
        parts = line.split()
        if not parts:
            continue
        nodes[parts[0]] = parts[1] if len(parts) > 1 else ''
    return nodes


class Reconciler:
    """Drives a ClusterPlan's steps through an executor."""

    def __init__(
        self,
        plan: ClusterPlan,
        executor,
        state_file: Path,
        force: bool = False,
        dry_run: bool = False,
        max_retries: int = None,
        delay: float = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.plan = plan
        self.executor = executor
        self.state_file = Path(state_file)
        self.force = force
        self.dry_run = dry_run
        self.max_retries = max_retries
        self.delay = delay
        self.sleep = sleep
        self._tokens: Dict[str, str] = {}

    def run(self) -> ReconcileResult:
        fingerprint = self.plan.fingerprint()
        state = load_state(self.state_file)
        planned = {step.key for step in self.plan.steps}
        completed = {} if self.force else {
            key: value
            for key, value in (state.get("completed") or {}).items()
            if key in planned
        }
        if state.get("fingerprint") and state["fingerprint"] != fingerprint:
            logger.info("🔄 Plan changed since the last run, unchanged steps will be skipped")

        result = ReconcileResult(fingerprint=fingerprint, dry_run=self.dry_run)
        self.verify_connectivity()

        for step in self.plan.steps:
            if completed.get(step.key) == step.to_dict():
                logger.info(f"⏭️  {step.key} already done")
                result.skipped.append(step.key)
                continue

            self._run_step(step)
            result.executed.append(step.key)
            if self.dry_run:
                continue
            completed[step.key] = step.to_dict()
            save_state(self.state_file, {"fingerprint": fingerprint, "completed": completed})

        if not self.dry_run:
            save_state(self.state_file, {"fingerprint": fingerprint, "completed": completed})
            self.verify_deployment()
            result.verified = True
        logger.info(
            f"✅ Reconciled {self.plan.spec.name}: {len(result.executed)} executed, "
            f"{len(result.skipped)} skipped"
        )
        return result

    def verify_connectivity(self) -> None:
        """Ping every planned host before changing anything."""
        if self.dry_run:
            logger.info(f"📝 [dry-run] would ping {len(self.plan.nodes)} hosts")
            return
        ping = retry(self.max_retries, self.delay, exceptions=RETRYABLE, sleep=self.sleep)(self.executor.ping)
        unreachable = []
        for node in self.plan.nodes:
            try:
                ping(node.name)
            except RetryError as e:
                logger.error(f"❌ {node.name} ({node.private_ip}) unreachable: {e}")
                unreachable.append(node.name)
        if unreachable:
            raise ExecutionError(
                f"Unreachable hosts: {', '.join(unreachable)}",
                step_key=f"preflight:{unreachable[0]}",
            )
        logger.info(f"✅ All {len(self.plan.nodes)} hosts reachable")

    def verify_deployment(self) -> None:
        """Compare the swarm's node list on the primary manager with the plan.

        Raises:
            ExecutionError: If a planned node is missing or joined with the wrong role
        """
        primary = self.plan.primary_manager
        list_nodes = retry(self.max_retries, self.delay, exceptions=RETRYABLE, sleep=self.sleep)(self.executor.run)
        try:
            listed = parse_node_list(list_nodes(primary.name, NODE_LIST_COMMAND))
        except RetryError as e:
            raise ExecutionError(f"Could not list swarm nodes on {primary.name}: {e}",
                                 step_key="verify") from e

        problems = []
        for node in self.plan.nodes:
            if node.membership == SwarmMembership.NONE:
                continue
            if node.name not in listed:
                problems.append(f"{node.name} is not in the swarm")
                continue
            is_manager = bool(listed[node.name])
            if is_manager != (node.membership == SwarmMembership.MANAGER):
                joined_as = "manager" if is_manager else "worker"
                problems.append(f"{node.name} joined as {joined_as}, planned as {node.membership.value}")

        planned = {n.name for n in self.plan.nodes}
        for hostname in sorted(set(listed) - planned):
            logger.warning(f"⚠️  {hostname} is in the swarm but not in the plan")

        if problems:
            raise ExecutionError("Swarm does not match the plan: " + "; ".join(problems), step_key="verify")
        logger.info(f"✅ Swarm on {primary.name} matches the plan")

    def _run_step(self, step: Step) -> None:
        tokens = self._tokens_for(step)
        command = step.command(tokens)
        logger.debug(f"Step context: {redact_sensitive_data({'step': step.key, 'target': step.target, 'token': tokens})}")

        if self.dry_run:
            logger.info(f"📝 [dry-run] {step.key} on {step.target}: {self._redact(command)}")
            return

        logger.info(f"🚀 {step.key} on {step.target}")
        attempt = retry(self.max_retries, self.delay, exceptions=RETRYABLE, sleep=self.sleep)(self.executor.run)
        try:
            attempt(step.target, command)
        except RetryError as e:
            raise ExecutionError(f"{step.key} failed on {step.target}: {e}", step_key=step.key) from e

    def _tokens_for(self, step: Step) -> Dict[str, str]:
        if step.token is None:
            return {}
        if step.token not in self._tokens:
            if self.dry_run:
                self._tokens[step.token] = f"<{step.token}-token>"
            else:
                self._tokens[step.token] = self._fetch_token(step.token)
        return {step.token: self._tokens[step.token]}

    def _fetch_token(self, kind: str) -> str:
        primary = self.plan.primary_manager
        fetch = retry(self.max_retries, self.delay, exceptions=RETRYABLE, sleep=self.sleep)(self.executor.run)
        try:
            token = fetch(primary.name, f"docker swarm join-token -q {kind}").strip()
        except RetryError as e:
            raise ExecutionError(f"Could not fetch {kind} join token from {primary.name}: {e}",
                                 step_key=f"join-token:{kind}") from e
        if not token:
            raise ExecutionError(f"Empty {kind} join token from {primary.name}",
                                 step_key=f"join-token:{kind}")
        return token

    def _redact(self, command: str) -> str:
        for token in self._tokens.values():
            command = command.replace(token, "[REDACTED]")
        return command

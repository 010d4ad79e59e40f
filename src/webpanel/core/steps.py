# src/webpanel/core/steps.py
"""
Sequential provisioning steps

Each step is either fatal (a failure stops the sequence and is raised to
the caller) or best-effort (a failure is logged and the sequence goes on).
Completed steps are never rolled back.
"""

from .exceptions import ExternalToolError, PanelError

FATAL = "fatal"
BEST_EFFORT = "best_effort"


class Step:
    """A named provisioning action with its failure policy"""

    def __init__(self, name, action, policy=FATAL):
        if policy not in (FATAL, BEST_EFFORT):
            raise ValueError(f"Unknown step policy: {policy}")
        self.name = name
        self.action = action
        self.policy = policy

    def __repr__(self):
        return f"Step({self.name!r}, policy={self.policy!r})"


def run_steps(resource, steps, logger):
    """Execute steps in order and return their outcomes.

    Outcomes are dicts with ``step``, ``status`` ("ok" or "failed"),
    ``policy``, ``error`` and ``result`` keys.
    """
    outcomes = []

    for step in steps:
        try:
            result = step.action()
        except Exception as e:
            logger.log_step(resource, step.name, "failed", str(e))
            outcomes.append(
                {
                    "step": step.name,
                    "status": "failed",
                    "policy": step.policy,
                    "error": str(e),
                    "result": None,
                }
            )

            if step.policy == FATAL:
                logger.error(f"{resource}: step '{step.name}' failed: {e}")
                if isinstance(e, PanelError):
                    raise
                raise ExternalToolError(f"{step.name} failed: {e}") from e

            logger.warning(f"{resource}: best-effort step '{step.name}' failed: {e}")
            continue

        logger.log_step(resource, step.name, "ok")
        outcomes.append(
            {
                "step": step.name,
                "status": "ok",
                "policy": step.policy,
                "error": None,
                "result": result,
            }
        )

    return outcomes


def failed_steps(outcomes):
    """Names of best-effort steps that failed"""
    return [o["step"] for o in outcomes if o["status"] == "failed"]

"""Policy Loader — reads the JSON lending-policy document into a core LendingPolicy.

Invariants:
    - Every failure (missing file, bad JSON, schema violation, invalid policy) raises
      PolicyConfigurationError: never an applicant-facing error
    - The returned policy has already passed core.check_policy
    - No path configured -> built-in LendingPolicy defaults

Design Decisions:
    - File IO lives here, not in core: the engine never reads configuration itself
    - load_policy_store() wraps the result in a PolicyStore so a later reload is a swap
"""

import logging
from pathlib import Path

from pydantic import ValidationError

from smartloan.core.errors import PolicyConfigurationError
from smartloan.core.policy import LendingPolicy, PolicyStore, check_policy
from smartloan.schemas.policy import PolicyDocument

logger = logging.getLogger(__name__)


def parse_policy(raw: str | bytes) -> LendingPolicy:
    """Parse and validate a policy document. Raises PolicyConfigurationError."""
    try:
        document = PolicyDocument.model_validate_json(raw)
    except ValidationError as e:
        first = e.errors()[0]
        option = ".".join(str(loc) for loc in first["loc"]) or "document"
        raise PolicyConfigurationError(first["msg"], option)
    policy = document.to_policy()
    check_policy(policy)
    return policy


def load_policy(path: str | Path | None) -> LendingPolicy:
    """Load the policy at path, or the defaults when path is None."""
    if path is None:
        logger.info("No policy file configured, using built-in lending policy")
        policy = LendingPolicy()
        check_policy(policy)
        return policy

    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise PolicyConfigurationError(f"cannot read {path}: {e.strerror}", "policy_file")
    policy = parse_policy(raw)
    logger.info(f"Loaded lending policy from {path}")
    return policy


def load_policy_store(path: str | Path | None) -> PolicyStore:
    return PolicyStore(load_policy(path))


def reload_policy(store: PolicyStore, path: str | Path | None) -> LendingPolicy:
    """Swap a freshly loaded policy into store. The old policy stays live on failure."""
    policy = load_policy(path)
    store.swap(policy)
    logger.info(f"Lending policy reloaded (version {store.version})")
    return policy

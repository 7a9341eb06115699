"""
Status polling for asynchronous remote operations.

The vendor API returns as soon as a mutating call is accepted while the
instance keeps changing status in the background. wait_for_state blocks
until the instance settles in a target status, using a fixed polling
interval.
"""

import logging
from typing import Any, Callable, Iterable, Optional, Tuple

from tenacity import Retrying, retry_if_exception_type, stop_after_delay, wait_fixed

from .base import (
    EMPTY_RESULT_ERROR_CODE,
    BaseDdsClient,
    ProvisionerApiError,
    UnexpectedStateError,
    WaitTimeoutError,
)

logger = logging.getLogger(__name__)

RefreshFunc = Callable[[], Tuple[Optional[Any], str]]


class _StillPending(Exception):
    """Raised inside the polling loop while the target is not reached yet."""

    def __init__(self, status: str):
        super().__init__(status)
        self.status = status


def wait_for_state(
    refresh: RefreshFunc,
    pending: Iterable[str],
    target: Iterable[str],
    timeout: float,
    interval: float,
    not_found_checks: int = 20,
    resource_id: Optional[str] = None
) -> Optional[Any]:
    """
    Poll until the refreshed status reaches one of the target statuses.

    Args:
        refresh: Returns (record, status); record is None when the resource
            does not exist
        pending: Statuses that mean "keep waiting"
        target: Statuses that mean "done"; empty means "done once gone"
        timeout: Seconds to wait before giving up
        interval: Seconds between two refreshes
        not_found_checks: Consecutive absent refreshes tolerated when the
            target is not empty
        resource_id: Resource ID for error messages

    Returns:
        The last refreshed record, or None if the resource is gone

    Raises:
        WaitTimeoutError: If the timeout elapses first
        UnexpectedStateError: If a status outside pending and target shows up
        ProvisionerApiError: If the resource stays absent while a target
            status is expected
    """
    pending = set(pending)
    target = set(target)
    not_found = 0

    try:
        for attempt in Retrying(
            stop=stop_after_delay(timeout),
            wait=wait_fixed(interval),
            retry=retry_if_exception_type(_StillPending),
            reraise=True,
        ):
            with attempt:
                record, status = refresh()

                if record is None:
                    if not target:
                        logger.debug(f"{resource_id} is gone")
                        return None
                    not_found += 1
                    if not_found > not_found_checks:
                        raise ProvisionerApiError(
                            f"Resource disappeared while waiting for {sorted(target)}",
                            code=EMPTY_RESULT_ERROR_CODE,
                            resource_id=resource_id,
                        )
                    raise _StillPending("")

                not_found = 0
                if status in target:
                    return record
                if status in pending:
                    logger.debug(f"{resource_id} is {status}, waiting for {sorted(target) or 'removal'}")
                    raise _StillPending(status)

                raise UnexpectedStateError(
                    f"Unexpected state '{status}', wanted target {sorted(target)}",
                    status=status,
                    resource_id=resource_id,
                )
    except _StillPending as e:
        raise WaitTimeoutError(
            f"Timeout while waiting for state to become {sorted(target) or 'removed'} "
            f"(last state: '{e.status}', timeout: {timeout}s)",
            last_status=e.status,
            timeout=timeout,
            resource_id=resource_id,
        ) from e


def instance_state_refresh_func(
    dds_client: BaseDdsClient,
    instance_id: str,
    fail_states: Iterable[str] = ()
) -> RefreshFunc:
    """
    Build a refresh closure reporting an instance's status.

    A missing instance is reported as (None, ""). A status in fail_states
    aborts the wait.
    """
    fail_states = set(fail_states)

    def refresh() -> Tuple[Optional[Any], str]:
        try:
            instance = dds_client.describe_instance(instance_id)
        except ProvisionerApiError as e:
            if e.is_not_found:
                return None, ""
            raise

        if instance.status in fail_states:
            raise UnexpectedStateError(
                f"Failed to wait for instance, it entered state '{instance.status}'",
                status=instance.status,
                resource_id=instance_id,
            )
        return instance, instance.status

    return refresh

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from budgetsync.adapters.sqlalchemy import SqlAlchemyStateUnitOfWork, StateStore
from budgetsync.app import (
    ApplyOutcome,
    apply_declarations,
    destroy_notifications,
    refresh_state,
)
from budgetsync.domain.errors import RemoteError
from budgetsync.domain.model import (
    DeclaredNotification,
    NotificationDescriptor,
    ReconciliationRecord,
    SubscriberEntry,
    SubscriptionType,
    ThresholdType,
    TrackedNotification,
)
from tests.helpers.budgets import (
    ACCOUNT_ID,
    BUDGET_NAME,
    FakeBudgetsClient,
    make_notification,
    make_record,
)

UowFactory = Callable[[], SqlAlchemyStateUnitOfWork]

MUTATING = {
    "create_notification",
    "add_subscriber",
    "remove_subscriber",
    "update_notification",
    "delete_notification",
}


def _declare(name: str, record: ReconciliationRecord | None = None) -> DeclaredNotification:
    return DeclaredNotification(name=name, record=record or make_record())


def _state(uow_factory: UowFactory) -> dict[str, TrackedNotification]:
    with uow_factory() as uow:
        return {tracked.name: tracked for tracked in uow.notifications.all()}


def _mutations(client: FakeBudgetsClient) -> list[str]:
    return [method for method in client.methods if method in MUTATING]


@pytest.fixture
def client() -> FakeBudgetsClient:
    return FakeBudgetsClient(omit_default_threshold_type=True)


def test_first_apply_creates_and_tracks(
    client: FakeBudgetsClient, sqlite_unit_of_work: UowFactory
) -> None:
    result = apply_declarations(
        [_declare("alert")], client=client, unit_of_work_factory=sqlite_unit_of_work
    )

    assert result.outcomes == {"alert": ApplyOutcome.CREATED}
    assert client.methods == ["create_notification", "list_notifications", "list_subscribers"]
    tracked = _state(sqlite_unit_of_work)["alert"]
    assert tracked.record == make_record()
    assert tracked.handle.startswith(f"{ACCOUNT_ID}:{BUDGET_NAME}:")


class EmailOnlyBudgetsClient(FakeBudgetsClient):
    """Service that silently keeps only the email subscribers of a new notification."""

    def create_notification(
        self,
        *,
        budget_name: str,
        account_id: str,
        notification: NotificationDescriptor,
        subscribers: Sequence[SubscriberEntry],
    ) -> None:
        super().create_notification(
            budget_name=budget_name,
            account_id=account_id,
            notification=notification,
            subscribers=[entry for entry in subscribers if entry.kind is SubscriptionType.EMAIL],
        )


class UnlistedBudgetsClient(FakeBudgetsClient):
    """Service whose listings do not show notifications created moments ago."""

    def list_notifications(
        self,
        *,
        budget_name: str,
        account_id: str,
    ) -> list[NotificationDescriptor]:
        super().list_notifications(budget_name=budget_name, account_id=account_id)
        return []


def test_created_notification_is_tracked_as_read_back(
    sqlite_unit_of_work: UowFactory,
) -> None:
    client = EmailOnlyBudgetsClient(omit_default_threshold_type=True)
    declared = make_record(email=("a@x.com",), sns=("arn:topic:1",))

    apply_declarations(
        [_declare("alert", declared)], client=client, unit_of_work_factory=sqlite_unit_of_work
    )

    tracked = _state(sqlite_unit_of_work)["alert"].record
    assert tracked == make_record(email=("a@x.com",))

    client.calls.clear()
    result = apply_declarations(
        [_declare("alert", declared)], client=client, unit_of_work_factory=sqlite_unit_of_work
    )

    assert result.outcomes == {"alert": ApplyOutcome.UPDATED}
    assert _mutations(client) == ["add_subscriber"]


def test_created_notification_missing_from_listing_keeps_desired_record(
    sqlite_unit_of_work: UowFactory,
) -> None:
    client = UnlistedBudgetsClient()

    apply_declarations(
        [_declare("alert")], client=client, unit_of_work_factory=sqlite_unit_of_work
    )

    assert client.methods == ["create_notification", "list_notifications"]
    assert _state(sqlite_unit_of_work)["alert"].record == make_record()


def test_second_apply_is_a_no_op(
    client: FakeBudgetsClient, sqlite_unit_of_work: UowFactory
) -> None:
    declarations = [_declare("alert")]
    apply_declarations(declarations, client=client, unit_of_work_factory=sqlite_unit_of_work)
    handle = _state(sqlite_unit_of_work)["alert"].handle
    client.calls.clear()

    result = apply_declarations(
        declarations, client=client, unit_of_work_factory=sqlite_unit_of_work
    )

    assert result.outcomes == {"alert": ApplyOutcome.UNCHANGED}
    assert _mutations(client) == []
    assert _state(sqlite_unit_of_work)["alert"].handle == handle


def test_changed_declaration_is_updated_in_place(
    client: FakeBudgetsClient, sqlite_unit_of_work: UowFactory
) -> None:
    apply_declarations(
        [_declare("alert")], client=client, unit_of_work_factory=sqlite_unit_of_work
    )
    client.calls.clear()
    desired = make_record(
        notification=make_notification(90.0),
        email=("b@x.com",),
        sns=("arn:topic:1",),
    )

    result = apply_declarations(
        [_declare("alert", desired)], client=client, unit_of_work_factory=sqlite_unit_of_work
    )

    assert result.outcomes == {"alert": ApplyOutcome.UPDATED}
    assert _mutations(client) == [
        "add_subscriber",
        "add_subscriber",
        "remove_subscriber",
        "update_notification",
    ]
    (remote,) = client.budgets[(BUDGET_NAME, ACCOUNT_ID)]
    assert remote.notification == make_notification(90.0)
    assert set(remote.subscribers) == {
        SubscriberEntry("b@x.com", SubscriptionType.EMAIL),
        SubscriberEntry("arn:topic:1", SubscriptionType.SNS),
    }
    assert _state(sqlite_unit_of_work)["alert"].record == desired


def test_budget_change_replaces_notification(
    client: FakeBudgetsClient, sqlite_unit_of_work: UowFactory
) -> None:
    apply_declarations(
        [_declare("alert")], client=client, unit_of_work_factory=sqlite_unit_of_work
    )
    client.calls.clear()

    result = apply_declarations(
        [_declare("alert", make_record(budget_name="quarterly"))],
        client=client,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert result.outcomes == {"alert": ApplyOutcome.REPLACED}
    assert client.methods == [
        "delete_notification",
        "create_notification",
        "list_notifications",
        "list_subscribers",
    ]
    assert client.budgets[(BUDGET_NAME, ACCOUNT_ID)] == []
    assert len(client.budgets[("quarterly", ACCOUNT_ID)]) == 1
    tracked = _state(sqlite_unit_of_work)["alert"]
    assert tracked.record.budget_name == "quarterly"
    assert tracked.handle.startswith(f"{ACCOUNT_ID}:quarterly:")


def test_notification_deleted_out_of_band_is_recreated(
    client: FakeBudgetsClient, sqlite_unit_of_work: UowFactory
) -> None:
    declarations = [_declare("alert")]
    apply_declarations(declarations, client=client, unit_of_work_factory=sqlite_unit_of_work)
    client.budgets[(BUDGET_NAME, ACCOUNT_ID)].clear()
    client.calls.clear()

    result = apply_declarations(
        declarations, client=client, unit_of_work_factory=sqlite_unit_of_work
    )

    assert result.outcomes == {"alert": ApplyOutcome.CREATED}
    assert client.methods == [
        "list_notifications",
        "create_notification",
        "list_notifications",
        "list_subscribers",
    ]


def test_interrupted_rule_update_is_picked_up_under_new_key(
    client: FakeBudgetsClient, sqlite_unit_of_work: UowFactory
) -> None:
    apply_declarations(
        [_declare("alert")], client=client, unit_of_work_factory=sqlite_unit_of_work
    )
    desired = make_record(notification=make_notification(95.0))
    # Remote already carries the new rule but local state was never saved.
    (remote,) = client.budgets[(BUDGET_NAME, ACCOUNT_ID)]
    remote.notification = desired.notification
    client.calls.clear()

    result = apply_declarations(
        [_declare("alert", desired)], client=client, unit_of_work_factory=sqlite_unit_of_work
    )

    assert result.outcomes == {"alert": ApplyOutcome.UNCHANGED}
    assert client.methods.count("list_notifications") == 2
    assert _mutations(client) == []
    assert _state(sqlite_unit_of_work)["alert"].record == desired


def test_undeclared_notifications_are_pruned(
    client: FakeBudgetsClient, sqlite_unit_of_work: UowFactory
) -> None:
    apply_declarations(
        [_declare("keep"), _declare("drop", make_record(notification=make_notification(50.0)))],
        client=client,
        unit_of_work_factory=sqlite_unit_of_work,
    )
    client.calls.clear()

    result = apply_declarations(
        [_declare("keep")], client=client, unit_of_work_factory=sqlite_unit_of_work
    )

    assert result.outcomes == {"keep": ApplyOutcome.UNCHANGED, "drop": ApplyOutcome.DELETED}
    assert _mutations(client) == ["delete_notification"]
    assert set(_state(sqlite_unit_of_work)) == {"keep"}
    (remaining,) = client.budgets[(BUDGET_NAME, ACCOUNT_ID)]
    assert remaining.notification == make_notification()


def test_no_prune_keeps_undeclared_notifications(
    client: FakeBudgetsClient, sqlite_unit_of_work: UowFactory
) -> None:
    apply_declarations(
        [_declare("keep"), _declare("drop", make_record(notification=make_notification(50.0)))],
        client=client,
        unit_of_work_factory=sqlite_unit_of_work,
    )
    client.calls.clear()

    result = apply_declarations(
        [_declare("keep")],
        client=client,
        unit_of_work_factory=sqlite_unit_of_work,
        prune=False,
    )

    assert result.names(ApplyOutcome.DELETED) == []
    assert "delete_notification" not in client.methods
    assert set(_state(sqlite_unit_of_work)) == {"keep", "drop"}


def test_default_account_fills_declarations_without_one(
    client: FakeBudgetsClient, sqlite_unit_of_work: UowFactory
) -> None:
    apply_declarations(
        [_declare("alert", make_record(account_id=None))],
        client=client,
        unit_of_work_factory=sqlite_unit_of_work,
        default_account_id="210987654321",
    )

    assert client.calls_to("create_notification")[0]["account_id"] == "210987654321"
    assert _state(sqlite_unit_of_work)["alert"].record.account_id == "210987654321"


def test_failure_keeps_state_of_converged_notifications(
    client: FakeBudgetsClient, sqlite_unit_of_work: UowFactory
) -> None:
    apply_declarations(
        [_declare("first")], client=client, unit_of_work_factory=sqlite_unit_of_work
    )
    client.failures["create_notification"] = RemoteError("throttled", code="ThrottlingException")
    updated = make_record(email=("a@x.com", "b@x.com"))
    second = make_record(notification=make_notification(10.0))

    with pytest.raises(RemoteError, match="throttled"):
        apply_declarations(
            [_declare("first", updated), _declare("second", second)],
            client=client,
            unit_of_work_factory=sqlite_unit_of_work,
        )

    state = _state(sqlite_unit_of_work)
    assert set(state) == {"first"}
    assert state["first"].record == updated


def test_refresh_stores_remote_drift_and_drops_missing(
    client: FakeBudgetsClient, sqlite_unit_of_work: UowFactory
) -> None:
    apply_declarations(
        [
            _declare("drifted"),
            _declare("gone", make_record(notification=make_notification(50.0))),
        ],
        client=client,
        unit_of_work_factory=sqlite_unit_of_work,
    )
    remotes = client.budgets[(BUDGET_NAME, ACCOUNT_ID)]
    remotes[0].subscribers.append(SubscriberEntry("extra@x.com", SubscriptionType.EMAIL))
    del remotes[1]

    result = refresh_state(client=client, unit_of_work_factory=sqlite_unit_of_work)

    assert result.refreshed == ["drifted"]
    assert result.removed == ["gone"]
    state = _state(sqlite_unit_of_work)
    assert set(state) == {"drifted"}
    refreshed = state["drifted"].record
    assert refreshed.subscribers.addresses(SubscriptionType.EMAIL) == {"a@x.com", "extra@x.com"}
    # The service omits the default threshold type; it is restored before storing.
    assert refreshed.notification.threshold_type is ThresholdType.PERCENTAGE


def test_destroy_deletes_everything_tracked(
    client: FakeBudgetsClient, sqlite_unit_of_work: UowFactory
) -> None:
    apply_declarations(
        [
            _declare("a"),
            _declare("b", make_record(notification=make_notification(50.0))),
        ],
        client=client,
        unit_of_work_factory=sqlite_unit_of_work,
    )
    client.calls.clear()

    deleted = destroy_notifications(client=client, unit_of_work_factory=sqlite_unit_of_work)

    assert deleted == 2
    assert client.methods == ["delete_notification", "delete_notification"]
    assert client.budgets[(BUDGET_NAME, ACCOUNT_ID)] == []
    assert _state(sqlite_unit_of_work) == {}


def test_destroy_tolerates_notifications_already_gone(
    client: FakeBudgetsClient, sqlite_unit_of_work: UowFactory
) -> None:
    apply_declarations(
        [_declare("a")], client=client, unit_of_work_factory=sqlite_unit_of_work
    )
    client.budgets[(BUDGET_NAME, ACCOUNT_ID)].clear()

    assert destroy_notifications(client=client, unit_of_work_factory=sqlite_unit_of_work) == 1
    assert _state(sqlite_unit_of_work) == {}


def test_default_state_store_follows_database_uri(
    client: FakeBudgetsClient, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    uri = f"sqlite+pysqlite:///{tmp_path / 'state.db'}"
    monkeypatch.setenv("DATABASE_URI", uri)

    apply_declarations([_declare("alert")], client=client)

    store = StateStore.from_uri(uri)
    try:
        assert set(_state(store.unit_of_work)) == {"alert"}
    finally:
        store.close()
    assert destroy_notifications(client=client) == 1


def test_apply_summary_is_logged_with_arguments(
    client: FakeBudgetsClient,
    sqlite_unit_of_work: UowFactory,
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.INFO, logger="budgetsync.app")

    apply_declarations(
        [_declare("alert")], client=client, unit_of_work_factory=sqlite_unit_of_work
    )

    (summary,) = [
        record for record in caplog.records if record.getMessage().startswith("Finished apply")
    ]
    assert summary.args == (1, 0, 0, 0, 0)
    assert summary.getMessage() == (
        "Finished apply: created=1, updated=0, replaced=0, unchanged=0, deleted=0"
    )

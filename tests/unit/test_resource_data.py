from ddsprovider.app.models.enums import Operation
from ddsprovider.app.schemas.instance import DEFAULT_TIMEOUTS, MONGODB_INSTANCE_SCHEMA
from ddsprovider.app.services.provisioning.resource_data import ResourceData

PRIOR = {
    "engine_version": "4.2",
    "db_instance_class": "dds.mongo.mid",
    "db_instance_storage": 10,
    "name": "orders",
    "security_ip_list": ["10.0.0.1", "10.0.0.2"],
    "zone_id": "cn-hangzhou-b",
    "instance_charge_type": "PostPaid",
    "retention_period": 7,
}


def make(config=None, state=None, resource_id="dds-1", **kwargs):
    declared = {"engine_version": "4.2", "db_instance_class": "dds.mongo.mid", "db_instance_storage": 10}
    declared.update(config or {})
    return ResourceData(
        MONGODB_INSTANCE_SCHEMA,
        config=declared,
        state=PRIOR if state is None else state,
        resource_id=resource_id,
        default_timeouts=DEFAULT_TIMEOUTS,
        **kwargs,
    )


def test_get_prefers_set_then_declared_then_computed_prior():
    d = make({"name": "billing"})

    assert d.get("name") == "billing"
    assert d.get("zone_id") == "cn-hangzhou-b"
    assert d.get("retention_period") == 7

    d.set("name", "observed")
    assert d.get("name") == "observed"


def test_get_ignores_prior_of_undeclared_plain_field():
    d = make()

    assert d.get("name") is None
    assert d.get("name", "fallback") == "fallback"


def test_has_change_detects_declared_difference():
    d = make({"db_instance_storage": 20, "name": "orders"})

    assert d.has_change("db_instance_storage")
    assert not d.has_change("name")
    assert d.has_changes("name", "db_instance_storage")


def test_has_change_ignores_collection_order():
    d = make({"name": "orders", "security_ip_list": {"10.0.0.2", "10.0.0.1"}})

    assert not d.has_change("security_ip_list")


def test_undeclared_computed_field_is_unchanged():
    assert not make().has_change("zone_id")


def test_empty_computed_declaration_is_unchanged():
    d = make({"security_ip_list": set(), "backup_period": set()}, state={**PRIOR, "backup_period": ["Monday"]})

    assert not d.has_change("security_ip_list")
    assert not d.has_change("backup_period")


def test_period_change_suppressed_for_postpaid():
    d = make({"instance_charge_type": "PostPaid", "period": 12})

    assert not d.has_change("period")


def test_period_change_kept_for_prepaid():
    d = make({"instance_charge_type": "PrePaid", "period": 12})

    assert d.has_change("period")


def test_kms_context_change_suppressed_without_ciphertext():
    d = make({"kms_encryption_context": {"purpose": "dds"}})

    assert not d.has_change("kms_encryption_context")

    d = make({"kms_encrypted_password": "blob", "kms_encryption_context": {"purpose": "dds"}})
    assert d.has_change("kms_encryption_context")


def test_requires_replacement_lists_force_new_changes():
    d = make({"engine_version": "5.0", "zone_id": "cn-hangzhou-e", "name": "orders"})

    assert sorted(d.requires_replacement()) == ["engine_version", "zone_id"]


def test_partial_state_only_carries_committed_fields():
    d = make({"name": "billing", "db_instance_storage": 20})
    d.partial(True)
    d.set_partial("name")

    state = d.state()

    assert state["name"] == "billing"
    assert state["db_instance_storage"] == 10
    assert d.committed == {"name"}


def test_leaving_partial_mode_rebases_prior_state():
    d = make({"name": "billing"})
    d.partial(True)
    d.set("retention_period", 14)
    d.partial(False)

    assert not d.has_change("name")
    assert d.state()["name"] == "billing"
    assert d.state()["retention_period"] == 14
    assert d.committed == set()


def test_state_is_none_without_identity():
    d = make()
    d.set_id("")

    assert d.state() is None


def test_timeout_override_and_default():
    d = make(timeouts={"update": 5})

    assert d.timeout(Operation.UPDATE) == 5
    assert d.timeout(Operation.CREATE) == 30 * 60


def test_redacted_masks_sensitive_fields():
    d = make({"account_password": "Secr3t#Pass"})

    redacted = d.redacted(["account_password", "name"])

    assert redacted == {"account_password": "***", "name": "orders"}
    assert "Secr3t#Pass" not in repr(d)

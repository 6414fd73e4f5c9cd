import json

import pytest

from zarfkit import operations
from zarfkit.operations import (
    AdmissionRequest,
    Hook,
    InvalidOperationError,
    Operation,
    Result,
)


def test_add_patch_operation_dict():
    op = operations.add_patch_operation("/spec/url", "value")
    assert op.to_dict() == {"op": "add", "path": "/spec/url", "value": "value"}


def test_replace_patch_operation_dict():
    op = operations.replace_patch_operation("/metadata/labels/zarf-agent", "patched")
    assert op.to_dict() == {
        "op": "replace",
        "path": "/metadata/labels/zarf-agent",
        "value": "patched",
    }


def test_remove_patch_operation_omits_value_and_from():
    assert operations.remove_patch_operation("/spec/a").to_dict() == {
        "op": "remove",
        "path": "/spec/a",
    }


@pytest.mark.parametrize(
    "factory, name",
    [
        (operations.copy_patch_operation, "copy"),
        (operations.move_patch_operation, "move"),
    ],
)
def test_copy_and_move_carry_from(factory, name):
    op = factory("/spec/a", "/spec/b")
    assert op.to_dict() == {"op": name, "path": "/spec/b", "from": "/spec/a"}


def test_falsy_value_is_kept():
    assert operations.add_patch_operation("/spec/x", False).to_dict()["value"] is False


def test_patch_json_round_trip():
    ops = [
        operations.add_patch_operation("/spec/secretRef", {"name": "private-git-server"}),
        operations.remove_patch_operation("/spec/x"),
    ]
    decoded = json.loads(json.dumps([o.to_dict() for o in ops]))
    assert decoded == [o.to_dict() for o in ops]
    assert "value" not in decoded[1]


def _allowing(request):
    return Result(allowed=True, msg=request.name)


def test_execute_dispatches_create():
    hook = Hook(create=_allowing)
    result = hook.execute(AdmissionRequest(name="pod-a", operation="CREATE"))
    assert result.allowed is True
    assert result.msg == "pod-a"


def test_execute_dispatches_by_enum_member():
    calls = []
    hook = Hook(update=lambda r: calls.append(r.name) or Result(allowed=True))
    hook.execute(AdmissionRequest(name="pod-b", operation=Operation.UPDATE))
    assert calls == ["pod-b"]


def test_execute_unknown_operation_is_not_allowed():
    result = Hook(create=_allowing).execute(AdmissionRequest(operation="PATCH"))
    assert result.allowed is False
    assert "PATCH" in result.msg
    assert result.patch_ops == []


def test_execute_unbound_operation_raises():
    with pytest.raises(InvalidOperationError, match="DELETE"):
        Hook(create=_allowing).execute(AdmissionRequest(operation="DELETE"))
"""Typed request/response bodies for the APIC REST API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

FAULT_CLASS = "faultInst"


class _ApicModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


class AaaUserAttributes(_ApicModel):
    name: str
    pwd: str


class AaaUser(_ApicModel):
    attributes: AaaUserAttributes


class LoginRequest(_ApicModel):
    aaa_user: AaaUser = Field(alias="aaaUser")

    @classmethod
    def for_credentials(cls, username: str, password: str) -> LoginRequest:
        return cls(aaaUser=AaaUser(attributes=AaaUserAttributes(name=username, pwd=password)))


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class FaultAttributes(_ApicModel):
    """The subset of faultInst attributes the registry needs."""

    dn: str = Field(min_length=1)
    descr: str = ""
    lc: str = ""
    last_transition: str = Field(alias="lastTransition")


class ApicResponse(_ApicModel):
    """Envelope shared by every APIC JSON reply and event socket frame.

    REST replies carry ``subscriptionId`` as a string, socket frames as a list.
    """

    total_count: str | int | None = Field(default=None, alias="totalCount")
    subscription_id: str | list[str] | None = Field(default=None, alias="subscriptionId")
    imdata: list[dict[str, Any]] = Field(default_factory=list)

    def error_text(self) -> str:
        """Return the controller-reported error text, or '' if none."""
        if not self.imdata:
            return ""
        error = self.imdata[0].get("error")
        if not isinstance(error, dict):
            return ""
        attributes = error.get("attributes") or {}
        return str(attributes.get("text", ""))

    def attributes(self, class_name: str) -> list[dict[str, Any]]:
        """Return the attribute mappings of every ``class_name`` object in imdata."""
        records: list[dict[str, Any]] = []
        for item in self.imdata:
            mo = item.get(class_name)
            if not isinstance(mo, dict):
                continue
            attrs = mo.get("attributes")
            if isinstance(attrs, dict):
                records.append(attrs)
        return records

    def first_attributes(self, class_name: str) -> dict[str, Any] | None:
        """Attributes of ``imdata[0].<class_name>``, or None if it is absent."""
        if not self.imdata:
            return None
        mo = self.imdata[0].get(class_name)
        if not isinstance(mo, dict):
            return None
        attrs = mo.get("attributes")
        return attrs if isinstance(attrs, dict) else None


# ---------------------------------------------------------------------------
# Clear endpoint learning on a node
# ---------------------------------------------------------------------------


class ClearEpTaskAttributes(_ApicModel):
    dn: str
    admin_st: str = Field(default="start", alias="adminSt")


class ClearEpTask(_ApicModel):
    attributes: ClearEpTaskAttributes
    children: list[dict[str, Any]] = Field(default_factory=list)


class ClearEpTaskChild(_ApicModel):
    task: ClearEpTask = Field(alias="topSystemClearEpLTask")


class ActionLSubjAttributes(_ApicModel):
    dn: str
    o_dn: str = Field(alias="oDn")


class ActionLSubj(_ApicModel):
    attributes: ActionLSubjAttributes
    children: list[ClearEpTaskChild] = Field(default_factory=list)


class ClearEndpointRequest(_ApicModel):
    """Start a topSystemClearEpLTask under the node's action subject."""

    action_lsubj: ActionLSubj = Field(alias="actionLSubj")

    @classmethod
    def for_node(cls, node_dn: str) -> ClearEndpointRequest:
        lsubj = f"{node_dn}/sys/action/lsubj-[{node_dn}]"
        task = ClearEpTask(
            attributes=ClearEpTaskAttributes(
                dn=f"{lsubj}/topSystemClearEpLTask",
                adminSt="start",
            ),
        )
        return cls(
            actionLSubj=ActionLSubj(
                attributes=ActionLSubjAttributes(dn=lsubj, oDn=node_dn),
                children=[ClearEpTaskChild(topSystemClearEpLTask=task)],
            )
        )

"""SOAP envelopes for the Magaya CS service."""

from __future__ import annotations

from typing import TYPE_CHECKING
from xml.etree import ElementTree as ET

from parcelsync.adapters.xmltools import child_text, find_named, local_name
from parcelsync.config.magaya import MAGAYA_SOAP_NAMESPACE
from parcelsync.domain.errors import ProtocolFault

if TYPE_CHECKING:
    from collections.abc import Mapping

    from parcelsync.config.magaya import MagayaConfig

SOAP_ENV_NAMESPACE = "http://schemas.xmlsoap.org/soap/envelope/"

ET.register_namespace("soapenv", SOAP_ENV_NAMESPACE)
ET.register_namespace("tns", MAGAYA_SOAP_NAMESPACE)


def soap_action(action: str) -> str:
    return f"{MAGAYA_SOAP_NAMESPACE}#{action}"


def build_envelope(
    action: str,
    config: MagayaConfig,
    params: Mapping[str, str],
) -> bytes:
    """Credentials first, then the action parameters, as child elements of ``action``."""

    envelope = ET.Element(f"{{{SOAP_ENV_NAMESPACE}}}Envelope")
    ET.SubElement(envelope, f"{{{SOAP_ENV_NAMESPACE}}}Header")
    body = ET.SubElement(envelope, f"{{{SOAP_ENV_NAMESPACE}}}Body")
    call = ET.SubElement(body, f"{{{MAGAYA_SOAP_NAMESPACE}}}{action}")

    fields = {
        "NetworkId": config.network_id,
        "UserName": config.user_name,
        "Password": config.password,
        **params,
    }
    for name, value in fields.items():
        ET.SubElement(call, f"{{{MAGAYA_SOAP_NAMESPACE}}}{name}").text = value

    return ET.tostring(envelope, encoding="utf-8", xml_declaration=True)


def raise_for_fault(root: ET.Element) -> None:
    """Raise ``ProtocolFault`` if the document carries a SOAP fault or an error node."""

    fault = find_named(root, "Fault")
    if fault is not None:
        code = child_text(fault, "faultcode")
        message = child_text(fault, "faultstring") or "SOAP fault"
        raise ProtocolFault(message, code=code)

    error = find_named(root, "Error")
    if error is not None:
        code = child_text(error, "ErrorCode") or child_text(error, "Number")
        message = (
            child_text(error, "Message")
            or child_text(error, "Description")
            or (error.text or "").strip()
            or f"{local_name(error.tag)} returned by Magaya"
        )
        raise ProtocolFault(message, code=code)

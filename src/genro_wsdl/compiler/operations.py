# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Operation Extractor.

Reads the WSDL 1.1 layer around the schemas:

    wsdl:message     parts pointing at wrapper elements
    wsdl:portType    abstract operations with input/output messages
    wsdl:binding     soapAction and style (SOAP 1.1 and 1.2 bindings)
    wsdl:service     service name

and produces one Operation per portType operation. Input and output are
the first message part declared with element=; when that element is typed
by a structural type, its canonical name is recorded too. RPC-style parts
(type=) and missing messages leave the references absent.

Security hints are the local names of WS-Policy assertions attached to the
binding, the binding operation or its input/output, either inline or
through wsp:PolicyReference. They are advisory strings for documentation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..catalog import Operation, QName
from ..errors import Diagnostic, ErrorContext
from ..schema_set import SchemaDocument
from ..xml_tree import SOAP12_NS, SOAP_NS, WSDL_NS, WSP_NAMESPACES, WSU_NS, XmlNode, documentation_of

if TYPE_CHECKING:
    from .schema_compiler import SchemaCompiler

logger = logging.getLogger(__name__)

SOAP_BINDING_NAMESPACES = (SOAP_NS, SOAP12_NS)

_POLICY_OPERATORS = ("Policy", "ExactlyOne", "All")


class OperationExtractor:
    """Extract Operations and the service name from wsdl:definitions."""

    def __init__(self, compiler: SchemaCompiler):
        self.compiler = compiler
        self.definitions = compiler.schema_set.definitions
        self.document: SchemaDocument | None = None
        if self.definitions is not None:
            self.document = SchemaDocument(
                location=compiler.schema_set.location,
                target_namespace=self.definitions.get("targetNamespace", ""),
                prefixes=self.definitions.nsmap,
                root=self.definitions,
            )
        self.messages: dict[QName, XmlNode] = {}
        self.bindings: dict[QName, list[XmlNode]] = {}
        self.policies: dict[str, XmlNode] = {}

    def extract(self) -> tuple[tuple[Operation, ...], str | None]:
        """Return (operations sorted by name, service name)."""
        if self.definitions is None:
            return (), None
        self._index()

        operations: dict[str, Operation] = {}
        for port_type, port_qname in self._port_types():
            for op in port_type.iter_children(WSDL_NS, "operation"):
                name = op.get("name")
                if not name:
                    continue
                if name in operations:
                    self._duplicate(name, port_type)
                    continue
                operations[name] = self._operation(name, op, port_qname)

        service = self.definitions.find(WSDL_NS, "service")
        service_name = service.get("name") if service is not None else None
        logger.debug("Extracted %d operations (service %s)", len(operations), service_name)
        return tuple(operations[name] for name in sorted(operations)), service_name

    # -------------------------------------------------------------------------
    # Indexing
    # -------------------------------------------------------------------------

    def _own_qname(self, node: XmlNode) -> QName:
        return QName(self.document.target_namespace, node.get("name", ""))

    def _index(self) -> None:
        for message in self.definitions.iter_children(WSDL_NS, "message"):
            self.messages[self._own_qname(message)] = message
        for binding in self.definitions.iter_children(WSDL_NS, "binding"):
            port_ref = binding.get("type")
            if not port_ref:
                continue
            port_qname = self.compiler.qualify(port_ref, binding, self.document, binding.get("name", ""))
            if port_qname is not None:
                self.bindings.setdefault(port_qname, []).append(binding)
        for node in self.definitions.walk():
            if node.tag != "Policy" or node.namespace not in WSP_NAMESPACES:
                continue
            policy_id = node.get(f"{{{WSU_NS}}}Id") or node.get("Name")
            if policy_id:
                self.policies[policy_id] = node

    def _port_types(self) -> list[tuple[XmlNode, QName]]:
        """Port types bound to SOAP, or every port type when none is."""
        port_types = [
            (port_type, self._own_qname(port_type))
            for port_type in self.definitions.iter_children(WSDL_NS, "portType")
        ]
        soap_bound = [
            (port_type, qname)
            for port_type, qname in port_types
            if any(_soap_child(binding, "binding") is not None for binding in self.bindings.get(qname, []))
        ]
        return soap_bound or port_types

    def _duplicate(self, name: str, port_type: XmlNode) -> None:
        diagnostic = Diagnostic(
            kind="duplicate-operation",
            message=f"Operation '{name}' is declared by more than one port type; keeping the first",
            context=ErrorContext(
                element=name,
                namespace=self.document.target_namespace,
                referenced_by=port_type.get("name"),
                file=self.document.location,
            ),
        )
        logger.warning("%s", diagnostic.message)
        self.compiler.diagnostics.append(diagnostic)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def _operation(self, name: str, op: XmlNode, port_qname: QName) -> Operation:
        input_element, input_type = self._message_payload(op.find(WSDL_NS, "input"), name)
        output_element, output_type = self._message_payload(op.find(WSDL_NS, "output"), name)

        binding, binding_op = self._binding_for(port_qname, name)
        action = ""
        style = "document"
        if binding is not None:
            soap_binding = _soap_child(binding, "binding")
            if soap_binding is not None:
                style = soap_binding.get("style", style)
        if binding_op is not None:
            soap_op = _soap_child(binding_op, "operation")
            if soap_op is not None:
                action = soap_op.get("soapAction", "")
                style = soap_op.get("style", style)

        return Operation(
            name=name,
            action=action,
            input_element=input_element,
            output_element=output_element,
            input_type=input_type,
            output_type=output_type,
            security_hints=self._security_hints(binding, binding_op),
            style=style,
            documentation=documentation_of(op),
        )

    def _message_payload(self, io_node: XmlNode | None, operation: str) -> tuple[QName | None, str | None]:
        if io_node is None or not io_node.get("message"):
            return None, None
        message_qname = self.compiler.qualify(io_node.get("message"), io_node, self.document, operation)
        message = self.messages.get(message_qname) if message_qname is not None else None
        if message is None:
            logger.debug("Operation %s: message %s not found", operation, io_node.get("message"))
            return None, None

        for part in message.iter_children(WSDL_NS, "part"):
            element_ref = part.get("element")
            if not element_ref:
                continue
            element_qname = self.compiler.qualify(element_ref, part, self.document, operation)
            if element_qname is None:
                return None, None
            decl = self.compiler.lookup("element", element_ref, part, self.document, operation)
            if decl is None:
                return element_qname, None
            _, ref = self.compiler.global_element_type(decl, operation)
            return element_qname, ref.name if ref.kind == "structure" else None
        return None, None

    def _binding_for(self, port_qname: QName, name: str) -> tuple[XmlNode | None, XmlNode | None]:
        bindings = self.bindings.get(port_qname, [])
        # prefer a binding that actually binds the operation
        for binding in bindings:
            for binding_op in binding.iter_children(WSDL_NS, "operation"):
                if binding_op.get("name") == name:
                    return binding, binding_op
        return (bindings[0] if bindings else None), None

    # -------------------------------------------------------------------------
    # Security hints
    # -------------------------------------------------------------------------

    def _security_hints(self, binding: XmlNode | None, binding_op: XmlNode | None) -> tuple[str, ...]:
        sources: list[XmlNode] = []
        if binding is not None:
            sources.append(binding)
        if binding_op is not None:
            sources.append(binding_op)
            sources.extend(binding_op.iter_children(WSDL_NS, "input", "output"))

        hints: list[str] = []
        visited: set[str] = set()
        for source in sources:
            for namespace in sorted(WSP_NAMESPACES):
                for uri in source.get(f"{{{namespace}}}PolicyURIs", "").split():
                    self._follow(uri, hints, visited)
            for child in source.children:
                if child.namespace not in WSP_NAMESPACES:
                    continue
                if child.tag == "PolicyReference":
                    self._follow(child.get("URI", ""), hints, visited)
                elif child.tag == "Policy":
                    self._collect(child, hints, visited)
        return tuple(hints)

    def _follow(self, uri: str, hints: list[str], visited: set[str]) -> None:
        policy_id = uri.split("#", 1)[-1]
        if not policy_id or policy_id in visited:
            return
        visited.add(policy_id)
        policy = self.policies.get(policy_id)
        if policy is None:
            logger.debug("Policy reference %s not found", uri)
            return
        self._collect(policy, hints, visited)

    def _collect(self, policy: XmlNode, hints: list[str], visited: set[str]) -> None:
        for child in policy.children:
            if child.namespace in WSP_NAMESPACES and child.tag in _POLICY_OPERATORS:
                self._collect(child, hints, visited)
            elif child.namespace in WSP_NAMESPACES and child.tag == "PolicyReference":
                self._follow(child.get("URI", ""), hints, visited)
            elif child.namespace not in WSP_NAMESPACES:
                _add_hint(hints, child.tag)
                for nested in child.walk():
                    if nested is not child and nested.tag.endswith("Token"):
                        _add_hint(hints, nested.tag)


def _add_hint(hints: list[str], hint: str) -> None:
    if hint not in hints:
        hints.append(hint)


def _soap_child(node: XmlNode, tag: str) -> XmlNode | None:
    for namespace in SOAP_BINDING_NAMESPACES:
        found = node.find(namespace, tag)
        if found is not None:
            return found
    return None

# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Content Model Flattener.

Turns the particle tree of one complex type (sequence, choice and all
groups nested to any depth, group references, element references) into one
flat ordered list of elements, plus one flat ordered list of attributes
(including attributeGroup expansion).

Occurrence folding:
    Every enclosing group multiplies its bounds into each leaf. An element
    declared 1..1 inside a sequence with maxOccurs="unbounded" becomes
    1..unbounded; an unbounded factor absorbs everything.

Choices:
    all-optional  members are walked with an enclosing minimum of 0, so
                  each becomes an optional property; no choice record.
    union         members keep their in-branch occurrence and carry a
                  ChoiceMember(group, branch); the type gets a ChoiceGroup
                  listing, per branch, the element names it can produce.

SOAP-encoded arrays:
    The soapenc:arrayType attribute ref of a soapenc:Array restriction is
    not an attribute of the payload; its wsdl:arrayType item type becomes a
    single 0..unbounded element named 'item'.

Same-named leaves inside one type are merged: min of the minimums, max of
the maximums (unbounded wins). Leaves with the same name and different
declared types cannot be represented by one property and are rejected.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..catalog import TEXT_SLOT, Attribute, ChoiceGroup, ChoiceMember, Element, QName, TypeRef
from ..errors import ErrorContext, MalformedContentModelError
from ..schema_set import SchemaDocument
from ..xml_tree import XSD_NS, XmlNode

if TYPE_CHECKING:
    from .schema_compiler import SchemaCompiler

logger = logging.getLogger(__name__)

Occurs = tuple[int, int | None]

ATTRIBUTE_USES = ("required", "optional", "prohibited")

# element name given to the items of a SOAP-encoded array
ENCODED_ITEM = "item"

_NON_NEGATIVE_RE = re.compile(r"^\s*\d+\s*$")


# =============================================================================
# Occurrence arithmetic
# =============================================================================


def mul_max(a: int | None, b: int | None) -> int | None:
    """Multiply max values (None means unbounded)."""
    if a is None or b is None:
        return None
    return a * b


def multiply(outer: Occurs, inner: Occurs) -> Occurs:
    """Fold an enclosing group's bounds into a particle's bounds."""
    return outer[0] * inner[0], mul_max(outer[1], inner[1])


def merge_occ(prev: Occurs | None, cur: Occurs) -> Occurs:
    """Merge occurrences (conservative union)."""
    if prev is None:
        return cur
    pmin, pmax = prev
    cmin, cmax = cur
    min_o = min(pmin, cmin)
    max_o = None if pmax is None or cmax is None else max(pmax, cmax)
    return (min_o, max_o)


def occurs(node: XmlNode, owner: str, document: SchemaDocument) -> Occurs:
    """Return (min, max) of a particle where max=None means unbounded.

    Raises:
        MalformedContentModelError: If a bound is not a non-negative integer
            ('unbounded' is accepted for maxOccurs) or max < min.
    """
    min_str = node.get("minOccurs")
    max_str = node.get("maxOccurs")

    if min_str is None:
        min_o = 1
    elif _NON_NEGATIVE_RE.match(min_str):
        min_o = int(min_str)
    else:
        raise _malformed(f"Invalid minOccurs '{min_str}'", node, owner, document)

    if max_str is None:
        max_o: int | None = 1
    elif max_str.strip() == "unbounded":
        max_o = None
    elif _NON_NEGATIVE_RE.match(max_str):
        max_o = int(max_str)
    else:
        raise _malformed(f"Invalid maxOccurs '{max_str}'", node, owner, document)

    if max_o is not None and max_o < min_o:
        raise _malformed(
            f"maxOccurs ({max_o}) is less than minOccurs ({min_o})", node, owner, document
        )
    return min_o, max_o


def _malformed(
    message: str, node: XmlNode, owner: str, document: SchemaDocument, suggestion: str | None = None
) -> MalformedContentModelError:
    label = node.get("name") or node.get("ref") or f"xs:{node.tag}"
    where = f" (line {node.line})" if node.line else ""
    return MalformedContentModelError(
        f"{message} in '{owner}'{where}",
        ErrorContext(
            element=label,
            namespace=document.target_namespace,
            referenced_by=owner,
            file=document.location,
            suggestion=suggestion or "Fix the content model of the type",
        ),
    )


# =============================================================================
# Flattener state
# =============================================================================


@dataclass
class _Leaf:
    name: str
    declared: str
    type_ref: TypeRef
    occurs: Occurs
    nillable: bool
    choice: ChoiceMember | None


@dataclass
class _ChoiceFrame:
    index: int
    occurs: Occurs
    branches: list[list[str]] = field(default_factory=list)


@dataclass(frozen=True)
class FlatContent:
    """Result of flattening one type's content model."""

    attributes: tuple[Attribute, ...]
    elements: tuple[Element, ...]
    choices: tuple[ChoiceGroup, ...]


class ContentModelFlattener:
    """Flatten the content model of one complex type.

    Args:
        compiler: The owning SchemaCompiler, used to resolve element and
            attribute types and global declarations.
        owner: Canonical name of the type being flattened.
    """

    def __init__(self, compiler: SchemaCompiler, owner: str):
        self.compiler = compiler
        self.owner = owner
        self.union = compiler.options.choice == "union"
        self._leaves: dict[str, _Leaf] = {}
        self._attributes: dict[str, Attribute] = {}
        self._choices: list[_ChoiceFrame] = []
        self._choice_stack: list[_ChoiceFrame] = []
        self._groups: list[QName] = []
        self._attribute_groups: list[QName] = []
        self._text: TypeRef | None = None

    # -------------------------------------------------------------------------
    # Particles
    # -------------------------------------------------------------------------

    def add_particles(self, container: XmlNode, document: SchemaDocument) -> None:
        """Walk the model group (sequence/choice/all/group) under 'container'."""
        for child in container.iter_children(XSD_NS, "sequence", "choice", "all", "group"):
            self.walk(child, document, (1, 1))

    def walk(self, node: XmlNode, document: SchemaDocument, outer: Occurs) -> None:
        """Depth-first walk of one particle with the enclosing bounds."""
        if node.namespace != XSD_NS:
            return
        tag = node.tag
        if tag == "element":
            self._element(node, document, outer)
        elif tag in ("sequence", "all"):
            bounds = multiply(outer, occurs(node, self.owner, document))
            for child in node.children:
                self.walk(child, document, bounds)
        elif tag == "choice":
            self._choice(node, document, outer)
        elif tag == "group":
            self._group(node, document, outer)
        elif tag == "any":
            logger.debug("Skipping xs:any wildcard in %s", self.owner)

    def _element(self, node: XmlNode, document: SchemaDocument, outer: Occurs) -> None:
        bounds = multiply(outer, occurs(node, self.owner, document))
        if node.get("ref"):
            name, declared, type_ref, nillable = self.compiler.resolve_element_ref(
                node.get("ref"), node, document, self.owner
            )
        elif node.get("name"):
            name = node.get("name")
            declared, type_ref = self.compiler.element_type(node, document, self.owner)
            nillable = node.get("nillable") == "true"
        else:
            raise _malformed(
                "Element particle has neither name nor ref",
                node,
                self.owner,
                document,
                suggestion="Add a name or a ref attribute to the element",
            )
        self._add_leaf(name, declared, type_ref, bounds, nillable, node, document)

    def _choice(self, node: XmlNode, document: SchemaDocument, outer: Occurs) -> None:
        bounds = multiply(outer, occurs(node, self.owner, document))
        if not self.union:
            for child in node.children:
                self.walk(child, document, (0, bounds[1]))
            return

        frame = _ChoiceFrame(index=len(self._choices), occurs=bounds)
        self._choices.append(frame)
        self._choice_stack.append(frame)
        for child in node.children:
            if child.namespace != XSD_NS or child.tag == "annotation":
                continue
            frame.branches.append([])
            self.walk(child, document, bounds)
        self._choice_stack.pop()

    def _group(self, node: XmlNode, document: SchemaDocument, outer: Occurs) -> None:
        ref = node.get("ref")
        if not ref:
            raise _malformed("Local xs:group without ref", node, self.owner, document)
        decl = self.compiler.lookup("group", ref, node, document, self.owner)
        if decl is None:
            return
        if decl.qname in self._groups:
            raise _malformed(
                f"Circular model group reference '{decl.qname.local}'",
                node,
                self.owner,
                document,
                suggestion="Break the cycle between the xs:group definitions",
            )
        bounds = multiply(outer, occurs(node, self.owner, document))
        self._groups.append(decl.qname)
        for child in decl.node.iter_children(XSD_NS, "sequence", "choice", "all"):
            self.walk(child, decl.document, bounds)
        self._groups.pop()

    def _add_leaf(
        self,
        name: str,
        declared: str,
        type_ref: TypeRef,
        bounds: Occurs,
        nillable: bool,
        node: XmlNode,
        document: SchemaDocument,
    ) -> None:
        member = None
        if self._choice_stack:
            innermost = self._choice_stack[-1]
            member = ChoiceMember(group=innermost.index, branch=len(innermost.branches) - 1)
            for frame in self._choice_stack:
                if name not in frame.branches[-1]:
                    frame.branches[-1].append(name)

        prev = self._leaves.get(name)
        if prev is None:
            self._leaves[name] = _Leaf(name, declared, type_ref, bounds, nillable, member)
            return
        if prev.declared != declared:
            raise _malformed(
                f"Element '{name}' is declared twice with different types "
                f"({prev.declared} and {declared})",
                node,
                self.owner,
                document,
                suggestion="Give the elements distinct names or the same type",
            )
        prev.occurs = merge_occ(prev.occurs, bounds)
        prev.nillable = prev.nillable or nillable

    # -------------------------------------------------------------------------
    # Attributes
    # -------------------------------------------------------------------------

    def add_attributes(self, container: XmlNode, document: SchemaDocument) -> None:
        """Collect xs:attribute, xs:attributeGroup and xs:anyAttribute children."""
        for child in container.iter_children(XSD_NS):
            if child.tag == "attribute":
                self._attribute(child, document)
            elif child.tag == "attributeGroup":
                self._attribute_group(child, document)
            elif child.tag == "anyAttribute":
                logger.debug("Skipping xs:anyAttribute wildcard in %s", self.owner)

    def _attribute(self, node: XmlNode, document: SchemaDocument) -> None:
        use = node.get("use", "optional")
        if use not in ATTRIBUTE_USES:
            raise _malformed(
                f"Invalid attribute use '{use}'",
                node,
                self.owner,
                document,
                suggestion="Use one of: required, optional, prohibited",
            )
        if node.get("ref"):
            item = self.compiler.encoded_array_item(node, document, self.owner)
            if item is not None:
                self._add_leaf(ENCODED_ITEM, item[0], item[1], (0, None), False, node, document)
                return
            name, declared, type_ref = self.compiler.resolve_attribute_ref(
                node.get("ref"), node, document, self.owner
            )
        elif node.get("name"):
            name = node.get("name")
            declared, type_ref = self.compiler.attribute_type(node, document, self.owner)
        else:
            raise _malformed("Attribute has neither name nor ref", node, self.owner, document)

        prev = self._attributes.get(name)
        if prev is not None:
            if prev.declared_type != declared:
                raise _malformed(
                    f"Attribute '{name}' is declared twice with different types",
                    node,
                    self.owner,
                    document,
                )
            return
        self._attributes[name] = Attribute(name=name, declared_type=declared, type_ref=type_ref, use=use)

    def _attribute_group(self, node: XmlNode, document: SchemaDocument) -> None:
        ref = node.get("ref")
        if not ref:
            return
        decl = self.compiler.lookup("attributeGroup", ref, node, document, self.owner)
        if decl is None:
            return
        if decl.qname in self._attribute_groups:
            raise _malformed(
                f"Circular attribute group reference '{decl.qname.local}'",
                node,
                self.owner,
                document,
            )
        self._attribute_groups.append(decl.qname)
        self.add_attributes(decl.node, decl.document)
        self._attribute_groups.pop()

    # -------------------------------------------------------------------------
    # Text content and result
    # -------------------------------------------------------------------------

    def set_text(self, type_ref: TypeRef) -> None:
        """Request the '$value' slot (mixed or simple content)."""
        self._text = type_ref

    def result(self) -> FlatContent:
        nillable_as_optional = self.compiler.options.nillable_as_optional
        elements = [
            Element(
                name=leaf.name,
                declared_type=leaf.declared,
                type_ref=leaf.type_ref,
                min_occurs=leaf.occurs[0],
                max_occurs=leaf.occurs[1],
                nillable=leaf.nillable,
                optional=leaf.occurs[0] == 0 or (leaf.nillable and nillable_as_optional),
                choice=leaf.choice,
            )
            for leaf in self._leaves.values()
            if leaf.name != TEXT_SLOT
        ]
        if self._text is not None:
            elements.append(text_slot(self._text))
        choices = tuple(
            ChoiceGroup(
                index=frame.index,
                min_occurs=frame.occurs[0],
                max_occurs=frame.occurs[1],
                branches=tuple(tuple(branch) for branch in frame.branches),
            )
            for frame in self._choices
        )
        return FlatContent(
            attributes=tuple(self._attributes.values()),
            elements=tuple(elements),
            choices=choices,
        )


def text_slot(type_ref: TypeRef) -> Element:
    """The reserved '$value' element carrying simple or mixed text."""
    return Element(
        name=TEXT_SLOT,
        declared_type=type_ref.declared,
        type_ref=type_ref,
        min_occurs=0,
        max_occurs=1,
        optional=True,
    )

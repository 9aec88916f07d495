"""Builders for structural class descriptions used across the test suite."""

from apigen.model import CLASS, AnnotationUsage, ClassDescription, FieldDescription

JAKARTA = "jakarta.persistence"
JAVAX = "javax.persistence"
PKG = "com.acme.model"
SERIALIZABLE = "java.io.Serializable"


def ann(simple, ns=JAKARTA, **attrs):
    return AnnotationUsage(f"{ns}.{simple}", dict(attrs))


def fld(name, type_name, *annotations, modifiers=(), enum=False):
    return FieldDescription(
        name=name,
        type_name=type_name,
        modifiers=frozenset(modifiers),
        annotations=tuple(annotations),
        type_is_enum=enum,
    )


def id_field(name="id", type_name="Long"):
    return fld(name, type_name, ann("Id"))


def entity(name, *fields, package=PKG, serializable=True, annotations=None, **kw):
    anns = (ann("Entity"),) if annotations is None else tuple(annotations)
    interfaces = kw.pop("interfaces", (SERIALIZABLE,) if serializable else ())
    return ClassDescription(
        name=name,
        package=package,
        kind=kw.pop("kind", CLASS),
        annotations=anns,
        fields=tuple(fields),
        interfaces=tuple(interfaces),
        **kw,
    )


def customer(**kw):
    """Customer{id: Long @Id, name: String, orders: List<Order> @OneToMany}."""
    return entity(
        "Customer",
        id_field(),
        fld("name", "String"),
        fld("orders", "List<Order>", ann("OneToMany", mappedBy="customer")),
        **kw,
    )

"""Unit tests for kubediscovery.graph.builder.CompositionBuilder.

The builder is driven by an in-memory lister keyed on (kind, namespace),
so no HTTP is involved.
"""

from __future__ import annotations

import pytest

from kubediscovery.graph.builder import CompositionBuilder
from kubediscovery.models.resources import OwnerReference, ResourceInstance
from kubediscovery.models.schema import KindSchema, SchemaSnapshot

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _inst(name: str, owner: str | None = None, status: str = "", namespace: str = "default") -> ResourceInstance:
    refs = (OwnerReference(owner),) if owner else ()
    return ResourceInstance(name=name, namespace=namespace, status=status, owner_references=refs)


class FakeLister:
    """Serves instances per (kind, namespace) and records every call."""

    def __init__(self, instances: dict[tuple[str, str], list[ResourceInstance]]) -> None:
        self._instances = instances
        self.calls: list[tuple[str, str]] = []

    async def __call__(self, kind_schema: KindSchema, namespace: str) -> list[ResourceInstance]:
        self.calls.append((kind_schema.kind, namespace))
        return list(self._instances.get((kind_schema.kind, namespace), []))


def _deployment_cluster() -> FakeLister:
    return FakeLister(
        {
            ("ReplicaSet", "default"): [_inst("web-abc123", owner="web", status="Ready")],
            ("Pod", "default"): [
                _inst("web-abc123-x1", owner="web-abc123", status="Running"),
                _inst("web-abc123-x2", owner="web-abc123", status="Running"),
                _inst("api-def456-y1", owner="api-def456", status="Running"),
            ],
        }
    )


# ---------------------------------------------------------------------------
# Deployment -> ReplicaSet -> Pod
# ---------------------------------------------------------------------------


class TestDeploymentTree:
    async def test_three_level_tree(self) -> None:
        builder = CompositionBuilder(_deployment_cluster())

        tree = await builder.build(SchemaSnapshot.baseline(), "Deployment", "web", "default", status="Ready")

        assert (tree.level, tree.kind, tree.name, tree.namespace, tree.status) == (
            1,
            "Deployment",
            "web",
            "default",
            "Ready",
        )
        assert len(tree.children) == 1
        rs = tree.children[0]
        assert (rs.level, rs.kind, rs.name, rs.status) == (2, "ReplicaSet", "web-abc123", "Ready")
        assert [(p.level, p.kind, p.name) for p in rs.children] == [
            (3, "Pod", "web-abc123-x1"),
            (3, "Pod", "web-abc123-x2"),
        ]
        assert all(p.children == () for p in rs.children)

    async def test_leaf_kind_has_no_children_and_no_calls(self) -> None:
        lister = _deployment_cluster()
        tree = await CompositionBuilder(lister).build(SchemaSnapshot.baseline(), "Pod", "web-abc123-x1", "default")
        assert tree.children == ()
        assert lister.calls == []

    async def test_children_are_scoped_to_root_namespace(self) -> None:
        lister = FakeLister(
            {
                ("ReplicaSet", "default"): [_inst("web-abc123", owner="web")],
                ("ReplicaSet", "staging"): [_inst("web-zzz999", owner="web", namespace="staging")],
            }
        )
        tree = await CompositionBuilder(lister).build(SchemaSnapshot.baseline(), "Deployment", "web", "staging")
        assert [c.name for c in tree.children] == ["web-zzz999"]
        assert all(ns == "staging" for _, ns in lister.calls)

    async def test_owner_kind_is_not_cross_checked(self) -> None:
        """Ownership matches by owner name only."""
        lister = FakeLister({("ReplicaSet", "default"): [_inst("web-abc123", owner="web")]})
        schema = SchemaSnapshot.baseline().merged([KindSchema("Service", "services", "api/v1", ("ReplicaSet",))])
        tree = await CompositionBuilder(lister).build(schema, "Service", "web", "default")
        assert [c.name for c in tree.children] == ["web-abc123"]


# ---------------------------------------------------------------------------
# Deduplication and ordering
# ---------------------------------------------------------------------------


class TestDeduplication:
    async def test_duplicate_child_names_collapse(self) -> None:
        lister = FakeLister(
            {
                ("ReplicaSet", "default"): [
                    _inst("web-abc123", owner="web", status="first"),
                    _inst("web-abc123", owner="web", status="second"),
                ]
            }
        )
        tree = await CompositionBuilder(lister).build(SchemaSnapshot.baseline(), "Deployment", "web", "default")
        assert [(c.name, c.status) for c in tree.children] == [("web-abc123", "first")]

    async def test_child_kinds_follow_declared_order(self) -> None:
        schema = SchemaSnapshot.baseline().merged(
            [KindSchema("App", "apps", "apis/example.com/v1", ("Service", "Secret", "Deployment"))]
        )
        lister = FakeLister(
            {
                ("Deployment", "default"): [_inst("shop", owner="shop")],
                ("Secret", "default"): [_inst("shop-creds", owner="shop")],
                ("Service", "default"): [_inst("shop", owner="shop")],
            }
        )
        tree = await CompositionBuilder(lister).build(schema, "App", "shop", "default")
        assert [(c.kind, c.name) for c in tree.children] == [
            ("Service", "shop"),
            ("Secret", "shop-creds"),
            ("Deployment", "shop"),
        ]

    async def test_child_kind_missing_from_schema_is_skipped(self) -> None:
        schema = SchemaSnapshot.baseline().merged([KindSchema("App", "apps", "apis/x/v1", ("Ghost", "Service"))])
        lister = FakeLister({("Service", "default"): [_inst("shop", owner="shop")]})
        tree = await CompositionBuilder(lister).build(schema, "App", "shop", "default")
        assert [c.kind for c in tree.children] == ["Service"]


# ---------------------------------------------------------------------------
# Cycle guard and depth limit
# ---------------------------------------------------------------------------


class TestRecursionGuards:
    async def test_cyclic_schema_terminates(self) -> None:
        """KindA -> KindB -> KindA with mutually-owning instances must terminate."""
        schema = SchemaSnapshot.from_entries(
            [
                KindSchema("KindA", "kindas", "apis/x/v1", ("KindB",)),
                KindSchema("KindB", "kindbs", "apis/x/v1", ("KindA",)),
            ]
        )
        lister = FakeLister(
            {
                ("KindA", "default"): [_inst("a", owner="b")],
                ("KindB", "default"): [_inst("b", owner="a")],
            }
        )
        tree = await CompositionBuilder(lister).build(schema, "KindA", "a", "default")

        assert [(n.level, n.kind, n.name) for n in tree.walk()] == [
            (1, "KindA", "a"),
            (2, "KindB", "b"),
        ]

    async def test_self_referencing_kind_terminates(self) -> None:
        schema = SchemaSnapshot.from_entries([KindSchema("Node", "nodes", "api/v1/nodes", ("Node",))])
        lister = FakeLister({("Node", "default"): [_inst("n1", owner="n1"), _inst("n2", owner="n1")]})
        tree = await CompositionBuilder(lister).build(schema, "Node", "n1", "default")
        assert [(n.level, n.name) for n in tree.walk()] == [(1, "n1"), (2, "n2")]

    async def test_same_identity_allowed_on_sibling_paths(self) -> None:
        """The guard is per path, so a diamond is expanded on both branches."""
        schema = SchemaSnapshot.from_entries(
            [
                KindSchema("Root", "roots", "apis/x/v1", ("Left", "Right")),
                KindSchema("Left", "lefts", "apis/x/v1", ("Leaf",)),
                KindSchema("Right", "rights", "apis/x/v1", ("Leaf",)),
                KindSchema("Leaf", "leaves", "apis/x/v1"),
            ]
        )
        lister = FakeLister(
            {
                ("Left", "default"): [_inst("mid", owner="top")],
                ("Right", "default"): [_inst("mid", owner="top")],
                ("Leaf", "default"): [_inst("bottom", owner="mid")],
            }
        )
        tree = await CompositionBuilder(lister).build(schema, "Root", "top", "default")
        assert [c.children[0].name for c in tree.children] == ["bottom", "bottom"]

    @pytest.mark.parametrize(("max_depth", "levels"), [(1, [1]), (2, [1, 2]), (3, [1, 2, 3, 3])])
    async def test_max_depth(self, max_depth: int, levels: list[int]) -> None:
        builder = CompositionBuilder(_deployment_cluster(), max_depth=max_depth)
        tree = await builder.build(SchemaSnapshot.baseline(), "Deployment", "web", "default")
        assert [n.level for n in tree.walk()] == levels

    def test_invalid_max_depth(self) -> None:
        with pytest.raises(ValueError):
            CompositionBuilder(_deployment_cluster(), max_depth=0)


# ---------------------------------------------------------------------------
# Owner matching mode
# ---------------------------------------------------------------------------


class TestOwnerMatching:
    def _lister(self) -> FakeLister:
        shared = ResourceInstance(
            name="shared-pod",
            namespace="default",
            owner_references=(OwnerReference("other-rs"), OwnerReference("web-abc123")),
        )
        return FakeLister({("Pod", "default"): [shared]})

    async def test_first_owner_only_by_default(self) -> None:
        tree = await CompositionBuilder(self._lister()).build(
            SchemaSnapshot.baseline(), "ReplicaSet", "web-abc123", "default"
        )
        assert tree.children == ()

    async def test_match_all_owners(self) -> None:
        tree = await CompositionBuilder(self._lister(), match_all_owners=True).build(
            SchemaSnapshot.baseline(), "ReplicaSet", "web-abc123", "default"
        )
        assert [c.name for c in tree.children] == ["shared-pod"]

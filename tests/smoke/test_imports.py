def test_import_graph():
    from hyperd.graph import (  # noqa: F401
        AttentionPropagator,
        CrossDomainPathFinder,
        FeatureVector,
        HyperGraphIndex,
        NodeKey,
    )


def test_import_runtime():
    from hyperd.runtime import (  # noqa: F401
        DomainRegistry,
        HyperdAPI,
        HyperdOrchestrator,
        TaskGraph,
        WorkflowCatalog,
    )


def test_import_errors_from_package_root():
    from hyperd import GraphCycleError, HyperdError, resolve_config  # noqa: F401

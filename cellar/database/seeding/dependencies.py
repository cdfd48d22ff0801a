from .target import SeederTarget

DEPENDENCIES: dict[SeederTarget, set[SeederTarget]] = {
    SeederTarget.CUSTOMER: set(),
    SeederTarget.WINE: set(),
    SeederTarget.USER: {SeederTarget.CUSTOMER},
    SeederTarget.CONSIGNED: {SeederTarget.CUSTOMER, SeederTarget.WINE}
}
"""Each seeder target mapped to the targets whose rows it references."""


def resolve_dependencies(targets: set[SeederTarget]) -> list[list[SeederTarget]]:
    """Pull in transitive dependencies and group the result into execution layers.

    Targets within one layer have no dependencies on each other and may run
    concurrently.
    """
    resolved: set[SeederTarget] = set()

    def visit(target: SeederTarget, path: tuple[SeederTarget, ...] = ()):
        if target in resolved:
            return

        if target in path:
            raise RuntimeError(f"Circular dependency detected: {' -> '.join((*path, target))}")

        for dep in DEPENDENCIES[target]:
            visit(dep, (*path, target))

        resolved.add(target)

    for t in targets:
        visit(t)

    return _topological_layers(resolved)


def _topological_layers(targets: set[SeederTarget]) -> list[list[SeederTarget]]:
    """Peel off targets without pending dependencies until none remain.

    Raises:
        RuntimeError:
            If the dependency graph has a cycle.
    """
    graph = {t: DEPENDENCIES[t] & targets for t in targets}
    layers: list[list[SeederTarget]] = []

    while graph:
        ready = {t for t, deps in graph.items() if not deps}

        if not ready:
            raise RuntimeError(f"Circular dependency detected in targets: {targets}")

        layers.append(sorted(ready))

        for t in ready:
            del graph[t]

        for deps in graph.values():
            deps.difference_update(ready)

    return layers

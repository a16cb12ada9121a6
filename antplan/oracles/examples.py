"""
Example oracles. Use them with e.g.

    hantplan(module='antplan.oracles.examples', function='anticipatory_cost_fn', include_structural=True)
"""


def anticipatory_cost_fn(snapshot):
    """Scores a state by the relaxation value passed along in the snapshot."""
    return snapshot.get("h_add", snapshot.get("h_max", 0))


def zero_cost_fn(snapshot):
    return 0


def failing_cost_fn(snapshot):
    raise RuntimeError("this oracle always fails")

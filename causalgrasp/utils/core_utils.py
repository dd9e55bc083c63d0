def ix_map_from_list(l):
    return {e: i for i, e in enumerate(l)}


def defdict2dict(defdict, keys):
    factory = defdict.default_factory
    d = {k: factory(v) for k, v in defdict.items()}
    for k in keys:
        if k not in d:
            d[k] = factory()
    return d


def to_set(o) -> set:
    if not isinstance(o, set):
        try:
            return set(o)
        except TypeError:
            if o is None:
                return set()
            return {o}
    return o


def diff_range(l1, l2):
    """
    Return the first and last positions at which the equal-length lists ``l1`` and ``l2`` hold different elements,
    or None if they agree everywhere. Elements are compared by identity first, then equality.
    """
    n = len(l1)
    first = next((i for i in range(n) if l1[i] is not l2[i] and l1[i] != l2[i]), None)
    if first is None:
        return None
    last = next(i for i in reversed(range(n)) if l1[i] is not l2[i] and l1[i] != l2[i])
    return first, last

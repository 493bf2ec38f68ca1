def sa_update_from_dict(obj, data: dict, allow_fields=None):
    """Copy values from data onto obj, optionally limited to allow_fields."""
    if allow_fields is None:
        allow_fields = data.keys()
    for k in allow_fields:
        if k in data:
            setattr(obj, k, data[k])
    return obj

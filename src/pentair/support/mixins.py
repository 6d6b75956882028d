import threading


def quote(val):
    return "'" + str(val) + "'" if val is not None else "None"


class StringerMixin:
    """ Appends the instance attributes, sorted by name, to the default string form. """

    def __str__(self):
        return type(self).__name__ + ':' + self._sorted_items_string()

    def _sorted_items_string(self):
        return "{" + ", ".join(["'%s': %s" % (key, quote(val))
                                for key, val in sorted(self.__dict__.items())]) + "}"


class ValueObjectMixin:
    """
    Equality and hashing for immutable value objects, such as thing type ids and status infos.
    Two instances are equal when they are of the same class and have equal attributes.
    """
    local = threading.local()

    def __eq__(self, other):
        if not isinstance(other, self.__class__) or not hasattr(other, '__dict__'):
            return False
        if not hasattr(ValueObjectMixin.local, 'seen'):
            ValueObjectMixin.local.seen = []
        return self._dicts_equal(other, ValueObjectMixin.local.seen)

    def _dicts_equal(self, other, seen):
        pair = (id(self), id(other))
        if pair in seen:
            raise ValueError("recursive comparison of %s" % type(self).__name__)
        seen.append(pair)
        try:
            return self.__dict__ == other.__dict__
        finally:
            seen.pop()

    def __ne__(self, other):
        return not self.__eq__(other)

    def __hash__(self):
        return hash((self.__class__, tuple(sorted(self.__dict__.items()))))

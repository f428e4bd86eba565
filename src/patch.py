from dataclasses import dataclass, fields


class _Unset:
    def __repr__(self):
        return "UNSET"

    def __bool__(self):
        return False


UNSET = _Unset()


@dataclass(frozen=True)
class Patch:
    """Partial update where every field defaults to ``UNSET``.

    Subclasses declare the patchable fields; ``None`` is a real value (clears
    a nullable column) and only ``UNSET`` means "leave unchanged".
    """

    @classmethod
    def from_dict(cls, data):
        names = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in names})

    def present(self):
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not UNSET}

    def is_empty(self):
        return not self.present()

from dataclasses import dataclass

from rowscan.matcher import NameMatcher, default_name_matcher

__all__ = ['ScanOptions']


@dataclass(frozen=True)
class ScanOptions:
    """Options

    - matcher: decides whether a column name matches a field name
      (default: case-insensitive equality)
    - lenient: accept integer and float widening for scalar columns and
      subclass instances for opaque values (default: False, exact types only)
    - cache_schema: reuse schema descriptors per destination type (default: True)
    """
    matcher: NameMatcher = default_name_matcher
    lenient: bool = False
    cache_schema: bool = True

    def __post_init__(self):
        if self.matcher is None:
            object.__setattr__(self, 'matcher', default_name_matcher)
        if not callable(self.matcher):
            raise ValueError(f'matcher must be callable, got {self.matcher!r}')

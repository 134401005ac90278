from typing import Any, Dict, Iterator, List, Optional, Union

from attrs import define, field

from tabview.column import ColumnInfo, ExColumn
from tabview.constants import DEFAULT_ID_FIELD
from tabview.utils import get_value


@define
class TableSchema:
    """The ordered set of columns of a table.

    You can retrieve a column using the `schema[key]` syntax, where key is
    either the key of the column or its index.

    Attributes:
        name: The name of the schema (`products`, `orders`).
        columns: The columns, in display order.
        id_field: The dotted path of the unique identifier of a record. Row
            activation uses it to locate records independently of their
            position in the view.
        filter_column: The key of the column that receives the text filter.
            Defaults to the first filterable column.
        detail_route: Optional route template for the detail page of a
            record; `{id}` is replaced with the record identifier.
    """

    name: str
    columns: List[ExColumn] = field(factory=list)
    id_field: str = field(default=DEFAULT_ID_FIELD)
    filter_column: Optional[str] = field(default=None)
    detail_route: Optional[str] = field(default=None)
    _by_key: Dict[str, ExColumn] = field(factory=dict, init=False, repr=False)

    def __attrs_post_init__(self):
        for col in self.columns:
            if col.key in self._by_key:
                raise ValueError(
                    f"Duplicate column key `{col.key}` in schema `{self.name}`"
                )
            self._by_key[col.key] = col

        if self.filter_column is None:
            for col in self.columns:
                if col.filterable:
                    self.filter_column = col.key
                    break
        elif self.filter_column not in self._by_key:
            raise ValueError(
                f"The text filter column `{self.filter_column}` is not part "
                f"of schema `{self.name}`; valid keys are: {self.keys()}"
            )

    def __hash__(self):
        return hash(self.name)

    def __contains__(self, key: Union[int, str]) -> bool:
        if isinstance(key, int):
            return 0 <= key < len(self.columns)
        return key in self._by_key

    def __iter__(self) -> Iterator[ExColumn]:
        return iter(self.columns)

    def __len__(self) -> int:
        return len(self.columns)

    def __getitem__(self, key: Union[int, str]) -> ExColumn:
        # Attempt to use the key as an index first.
        if isinstance(key, int):
            return self.columns[key]

        result = self._by_key.get(key)
        if result is None:
            raise KeyError(
                f"No column found for key `{key}` in schema `{self.name}`"
            )
        return result

    def get(self, key: str) -> Optional[ExColumn]:
        """Get a column by its key or None if there is no such column."""
        return self._by_key.get(key)

    def keys(self) -> List[str]:
        """The keys of the columns, in display order."""
        return [c.key for c in self.columns]

    def index_of(self, key: str) -> int:
        """The position of a column in the schema or -1 if not found."""
        for i, col in enumerate(self.columns):
            if col.key == key:
                return i
        return -1

    def record_id(self, record: Any) -> Any:
        """Get the unique identifier of a record."""
        return get_value(record, self.id_field)

    @classmethod
    def from_info(
        cls,
        name: str,
        columns: List[Union[ColumnInfo, Dict[str, Any]]],
        **kwargs: Any,
    ) -> "TableSchema":
        """Create a schema from column information.

        Args:
            name: The name of the schema.
            columns: Either `ColumnInfo` instances or dictionaries that are
                validated into `ColumnInfo` instances.
            kwargs: Other attributes of the schema.
        """
        result = []
        for info in columns:
            if not isinstance(info, ColumnInfo):
                info = ColumnInfo.model_validate(info)
            result.append(info.to_column())
        return cls(name=name, columns=result, **kwargs)

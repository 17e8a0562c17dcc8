"""
SQLAlchemy Core tables rendered from a validated schema registry.
"""
from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, MetaData, String, Table, Text

from relrepo.registry import FieldType, SchemaRegistry

_COLUMN_TYPES = {
    FieldType.INTEGER: Integer,
    FieldType.STRING: String,
    FieldType.TEXT: Text,
    FieldType.BOOLEAN: Boolean,
    FieldType.FLOAT: Float,
    FieldType.DATETIME: lambda: DateTime(timezone=True),
}


def build_metadata(registry: SchemaRegistry) -> MetaData:
    metadata = MetaData()
    for definition in registry:
        owning = {rel.foreign_key: rel for rel in definition.relationships if rel.is_owning}
        columns = [Column(definition.primary_key, Integer, primary_key=True, autoincrement=True)]
        for field in definition.fields:
            rel = owning.get(field.name)
            args = []
            if rel is not None:
                target = registry.resolve(rel.target)
                args.append(ForeignKey(f"{target.name}.{target.primary_key}", ondelete=rel.on_delete.sql))
            columns.append(
                Column(
                    field.name,
                    _COLUMN_TYPES[field.type](),
                    *args,
                    nullable=field.nullable,
                    index=rel is not None,
                )
            )
        Table(definition.name, metadata, *columns)
    return metadata

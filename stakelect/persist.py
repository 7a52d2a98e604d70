'''Conversion of configuration objects to and from JSON-ready dictionaries.

This does not define a storage format for the ledger itself (that is the
host's business); it serves parameter objects such as
:class:`stakelect.config.ElectionConfig` so that they can be read from JSON
scenario files and written back.

Only classes decorated by :func:`simple_serialization` and the exact number
types in `VALUE_TYPES` can be reconstructed; a scenario file cannot make the
loader import or call anything else.
'''

import inspect
import importlib
from fractions import Fraction
from decimal import Decimal
from typing import Any, Callable, Dict, List, Tuple


SERIALIZABLE_CLASSES: Dict[str, type] = {}
'''Classes that can be reconstructed, by their scoped name.'''


def simple_serialization(class_: type) -> type:
    '''A decorator to provide a simple to_dict() serialization method.

    The resulting method serializes all object attributes named like the
    class's constructor parameters, so it only suits classes that keep
    their constructor arguments as same-named attributes (or properties).
    The class is also registered for deserialization.

    :param class_: The class to add the method to.
    '''
    param_names = getattr(class_, 'serialize_params', None)
    if param_names is None:
        param_names = [
            name for name in inspect.signature(class_.__init__).parameters
            if name != 'self'
        ]

    def to_dict(self) -> Dict[str, Any]:
        out_dict = {'class': scoped_class_name(self)}
        out_dict.update(
            (attr, serialize_value(getattr(self, attr)))
            for attr in param_names
        )
        return out_dict

    class_.to_dict = to_dict
    SERIALIZABLE_CLASSES['.'.join((class_.__module__, class_.__name__))] = class_
    return class_


def serialize_value(value: Any) -> Any:
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    elif isinstance(value, tuple(ATOMIC_TYPES)):
        return value
    for value_type, (type_name, converter) in VALUE_TYPES.items():
        if type(value) is value_type:
            return {'type': type_name, 'arguments': converter(value)}
    if isinstance(value, dict):
        return {str(key): serialize_value(val) for key, val in value.items()}
    elif isinstance(value, (list, tuple)):
        return [serialize_value(val) for val in value]
    raise ValueError(f'cannot serialize {value!r} to dict format')


def deserialize_value(value: Any) -> Any:
    if isinstance(value, dict):
        if 'type' in value:
            return deserialize_typed(value)
        elif 'class' in value:
            return deserialize_class(value)
        else:
            return {key: deserialize_value(val) for key, val in value.items()}
    elif isinstance(value, tuple(ATOMIC_TYPES)):
        return value
    elif isinstance(value, list):
        return [deserialize_value(val) for val in value]
    else:
        raise ValueError(f'cannot deserialize {value!r}, type unknown')


def deserialize_typed(typedef: Dict[str, Any]) -> Any:
    for value_type, (type_name, _) in VALUE_TYPES.items():
        if typedef['type'] == type_name:
            break
    else:
        raise ValueError(f'unknown value type: {typedef["type"]!r}')
    if 'arguments' in typedef:
        return value_type(*typedef['arguments'])
    else:
        raise ValueError(f'invalid typed value contents: {typedef!r}')


def deserialize_class(clsdef: Dict[str, Any]) -> Any:
    cls = get_class(clsdef['class'])
    params = {
        key: deserialize_value(val)
        for key, val in clsdef.items() if key != 'class'
    }
    return cls(**params)


def get_class(identifier: str) -> type:
    '''Return a registered serializable class by its scoped name.

    Modules of the package are imported on demand so that their classes get
    registered; nothing outside the package is imported.
    '''
    if not is_scoped_identifier(identifier):
        raise ValueError(f'invalid stakelect class def: {identifier}')
    if identifier not in SERIALIZABLE_CLASSES:
        module = identifier.rsplit('.', 1)[0]
        if module.split('.')[0] == __name__.split('.')[0]:
            importlib.import_module(module)
    try:
        return SERIALIZABLE_CLASSES[identifier]
    except KeyError:
        raise ValueError(f'class not serializable: {identifier}')


def from_dict(value: Dict[str, Any]) -> Any:
    '''Reconstruct a configuration object from a JSON-like dictionary.

    :param value: A dictionary created by :func:`to_dict`.
    '''
    if not isinstance(value, dict):
        raise ValueError('invalid stakelect object def: dict expected, '
                         f'got {value!r}')
    elif 'class' not in value:
        raise ValueError('invalid stakelect object def: must have a class key')
    return deserialize_class(value)


def to_dict(obj: Any) -> Dict[str, Any]:
    '''Serialize a configuration object to a JSON-ready dictionary.'''
    return serialize_value(obj)


def is_scoped_identifier(value: Any) -> bool:
    return (
        isinstance(value, str)
        and not value.startswith('.')
        and all(chunk.isidentifier() for chunk in value.split('.'))
    )


def scoped_class_name(value: Any) -> str:
    cls = value.__class__
    return '.'.join((cls.__module__, cls.__name__))


ATOMIC_TYPES: List[type] = [
    str, int, float, bool, type(None),
]

VALUE_TYPES: Dict[type, Tuple[str, Callable[[Any], List[Any]]]] = {
    Fraction: ('Fraction', lambda f: list(f.as_integer_ratio())),
    Decimal: ('Decimal', lambda d: [str(d)]),
}
'''Exact number types kept in JSON as a type name and constructor arguments.'''

"""
Container dumpers

Serialize a compiled ContainerBuilder. The YAML, JSON and XML outputs use
the loader document shapes, so a dumped container can be loaded back.
PythonDumper emits a module with a Container subclass.
"""

import json
import keyword
import math
import re
import xml.etree.ElementTree as ET
from datetime import datetime
from typing import Any, Dict, Type

import yaml

from .definition import Definition, Reference, iter_references, map_values
from .exceptions import DumperException
from .loader import _phpize

GENERATED_HEADER = "Generated by dibuild on {date}. Do not edit."


class Dumper:
    """Base dumper"""

    format: str = ''

    def dump(self, container, **options) -> str:
        if not container.is_compiled:
            raise DumperException("the container must be compiled before it is dumped")
        return self._dump(container, **options)

    def _dump(self, container, **options) -> str:
        raise NotImplementedError


def _escape_percent(value: Any) -> Any:
    if isinstance(value, str):
        return value.replace('%', '%%')
    return value


def _escape(value: Any) -> Any:
    """Escape literals so loaders and the placeholder pass read them back unchanged."""
    if isinstance(value, Reference):
        return str(value)
    value = _escape_percent(value)
    if isinstance(value, str) and value.startswith('@'):
        return '@' + value
    return value


def _definition_document(definition: Definition) -> Dict[str, Any]:
    document: Dict[str, Any] = {}
    if definition.class_:
        document['class'] = definition.class_
    if definition.factory:
        document['factory'] = definition.factory
    if definition.arguments:
        document['arguments'] = map_values(definition.arguments, _escape)
    if definition.calls:
        document['calls'] = [
            [method, map_values(arguments, _escape)] for method, arguments in definition.calls
        ]
    if definition.tags:
        document['tags'] = [map_values(dict(tag), _escape_percent) for tag in definition.tags]
    if not definition.shared:
        document['shared'] = False
    if not definition.public:
        document['public'] = False
    return document


def _container_document(container) -> Dict[str, Any]:
    services: Dict[str, Any] = {}
    for service_id, definition in sorted(container.get_definitions().items()):
        services[service_id] = _definition_document(definition)
    for alias, target in sorted(container.get_aliases().items()):
        services[alias] = f"@{target}"
    return {
        'parameters': {
            name: map_values(value, _escape_percent)
            for name, value in sorted(container.get_parameters().items())
        },
        'services': services,
    }


class YamlDumper(Dumper):
    """Dump options: indent (default 2), width"""

    format = 'yaml'

    def _dump(self, container, **options) -> str:
        header = '# ' + GENERATED_HEADER.format(date=datetime.now().isoformat(timespec='seconds'))
        body = yaml.safe_dump(
            _container_document(container),
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
            indent=int(options.get('indent', 2)),
            width=int(options.get('width', 80)),
        )
        return f"{header}\n{body}"


class JsonDumper(Dumper):
    """Dump options: indent (default 4)"""

    format = 'json'

    def _dump(self, container, **options) -> str:
        try:
            return json.dumps(
                _container_document(container),
                indent=int(options.get('indent', 4)),
                ensure_ascii=False,
            ) + "\n"
        except (TypeError, ValueError) as e:
            raise DumperException(f"cannot encode container as JSON: {e}")


class XmlDumper(Dumper):
    """Dump options: indent (default 4 spaces)"""

    format = 'xml'

    def _dump(self, container, **options) -> str:
        root = ET.Element('container')
        root.append(ET.Comment(
            ' ' + GENERATED_HEADER.format(date=datetime.now().isoformat(timespec='seconds')) + ' '
        ))

        parameters = ET.SubElement(root, 'parameters')
        for name, value in sorted(container.get_parameters().items()):
            self._value_element(parameters, 'parameter', value, key=name)

        services = ET.SubElement(root, 'services')
        for service_id, definition in sorted(container.get_definitions().items()):
            element = ET.SubElement(services, 'service', {'id': service_id})
            if definition.class_:
                element.set('class', definition.class_)
            if definition.factory:
                element.set('factory', definition.factory)
            if not definition.shared:
                element.set('shared', 'false')
            if not definition.public:
                element.set('public', 'false')
            self._arguments(element, definition.arguments)
            for method, arguments in definition.calls:
                call = ET.SubElement(element, 'call', {'method': method})
                self._arguments(call, arguments)
            for tag in definition.tags:
                ET.SubElement(element, 'tag', {k: self._scalar_text(v) for k, v in tag.items()})
        for alias, target in sorted(container.get_aliases().items()):
            ET.SubElement(services, 'service', {'id': alias, 'alias': target})

        ET.indent(root, space=' ' * int(options.get('indent', 4)))
        return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(root, encoding='unicode') + "\n"

    def _arguments(self, parent: ET.Element, arguments) -> None:
        if isinstance(arguments, dict):
            for key, value in arguments.items():
                self._value_element(parent, 'argument', value, key=key)
        else:
            for value in arguments:
                self._value_element(parent, 'argument', value)

    def _value_element(self, parent: ET.Element, tag: str, value: Any, key: str = None) -> None:
        element = ET.SubElement(parent, tag)
        if key is not None:
            element.set('key', str(key))

        if isinstance(value, Reference):
            element.set('type', 'service')
            element.set('id', value.id)
            if value.optional:
                element.set('on-invalid', value.on_invalid.value)
        elif isinstance(value, dict):
            element.set('type', 'collection')
            for child_key, child in value.items():
                self._value_element(element, tag, child, key=child_key)
        elif isinstance(value, (list, tuple)):
            element.set('type', 'collection')
            for child in value:
                self._value_element(element, tag, child)
        elif isinstance(value, str):
            text = value.replace('%', '%%')
            if _phpize(text.strip()) != text or text != text.strip():
                element.set('type', 'string')
            element.text = text
        else:
            element.text = self._scalar_text(value)

    @staticmethod
    def _scalar_text(value: Any) -> str:
        if value is None:
            return 'null'
        if isinstance(value, bool):
            return 'true' if value else 'false'
        if isinstance(value, str):
            return value.replace('%', '%%')
        return str(value)


class PythonDumper(Dumper):
    """
    Emits an importable module.

    Dump options:
        class_name: Generated class name (default CompiledContainer)
        base_class: Dotted path of the base class
                    (default dibuild.container.runtime.Container)
    """

    format = 'python'
    DEFAULT_CLASS_NAME = 'CompiledContainer'
    DEFAULT_BASE_CLASS = 'dibuild.container.runtime.Container'

    def _dump(self, container, **options) -> str:
        class_name = options.get('class_name', self.DEFAULT_CLASS_NAME)
        if not str(class_name).isidentifier() or keyword.iskeyword(class_name):
            raise DumperException(f"'{class_name}' is not a valid class name")
        base_module, _, base_name = str(options.get('base_class', self.DEFAULT_BASE_CLASS)).rpartition('.')
        if not base_module or not base_name.isidentifier():
            raise DumperException(f"'{options.get('base_class')}' is not a dotted class path")

        definitions = sorted(container.get_definitions().items())
        method_names = self._method_names(service_id for service_id, _ in definitions)

        lines = [
            '"""',
            GENERATED_HEADER.format(date=datetime.now().isoformat(timespec='seconds')),
            '"""',
            '',
            f'from {base_module} import {base_name}',
            '',
            '',
            f'class {class_name}({base_name}):',
            '',
        ]
        lines += self._mapping('PARAMETERS', sorted(container.get_parameters().items()), render=True)
        lines += self._mapping('ALIASES', sorted(container.get_aliases().items()))
        lines += self._mapping('METHODS', [(sid, method_names[sid]) for sid, _ in definitions])
        shared = [sid for sid, definition in definitions if definition.shared]
        lines.append(
            '    SHARED = {' + ', '.join(repr(sid) for sid in shared) + '}' if shared else '    SHARED = set()'
        )

        for service_id, definition in definitions:
            lines.append('')
            lines += self._method(service_id, method_names[service_id], definition)

        return '\n'.join(lines) + '\n'

    @staticmethod
    def _method_names(service_ids) -> Dict[str, str]:
        names: Dict[str, str] = {}
        used = set()
        for service_id in service_ids:
            base = '_get_' + re.sub(r'\W', '_', service_id).strip('_').lower() + '_service'
            name, counter = base, 1
            while name in used:
                counter += 1
                name = f"{base}_{counter}"
            used.add(name)
            names[service_id] = name
        return names

    def _mapping(self, attribute: str, items, render: bool = False) -> list:
        if not items:
            return [f'    {attribute} = {{}}']
        lines = [f'    {attribute} = {{']
        for key, value in items:
            rendered = self._render(value) if render else repr(value)
            lines.append(f'        {key!r}: {rendered},')
        lines.append('    }')
        return lines

    def _method(self, service_id: str, method_name: str, definition: Definition) -> list:
        target = definition.factory or definition.class_
        lines = [
            f'    def {method_name}(self):',
            f'        # {service_id!r}',
        ]
        call = f"self._load({target!r})({self._render_arguments(service_id, definition.arguments)})"
        if not definition.calls:
            lines.append(f'        return {call}')
            return lines
        lines.append(f'        instance = {call}')
        for method, arguments in definition.calls:
            if not method.isidentifier():
                raise DumperException(f"'{method}' is not a valid method name", service_id)
            lines.append(f'        instance.{method}({self._render_arguments(service_id, arguments)})')
        lines.append('        return instance')
        return lines

    def _render_arguments(self, service_id: str, arguments) -> str:
        if isinstance(arguments, dict):
            parts = []
            for key, value in arguments.items():
                if not str(key).isidentifier() or keyword.iskeyword(str(key)):
                    raise DumperException(f"'{key}' is not a valid keyword argument", service_id)
                parts.append(f"{key}={self._render(value)}")
            return ', '.join(parts)
        return ', '.join(self._render(value) for value in arguments)

    def _render(self, value: Any) -> str:
        if isinstance(value, Reference):
            if value.optional:
                return f"self.get({value.id!r}, None)"
            return f"self.get({value.id!r})"
        if isinstance(value, dict):
            return '{' + ', '.join(f"{self._render(k)}: {self._render(v)}" for k, v in value.items()) + '}'
        if isinstance(value, list):
            return '[' + ', '.join(self._render(v) for v in value) + ']'
        if isinstance(value, tuple):
            return '(' + ''.join(f"{self._render(v)}, " for v in value).rstrip() + ')'
        if isinstance(value, float) and not math.isfinite(value):
            return f"float({str(value)!r})"
        if value is None or isinstance(value, (str, int, float, bool)):
            return repr(value)
        raise DumperException(f"cannot render {type(value).__name__} value {value!r} as Python")


class GraphvizDumper(Dumper):
    """
    Dump options:
        graph_name: digraph name (default container)
        rankdir: Graphviz rankdir (default LR)

    Solid edges are constructor dependencies, dashed edges optional
    references or method call dependencies.
    """

    format = 'graphviz'

    def _dump(self, container, **options) -> str:
        graph_name = options.get('graph_name', 'container')
        lines = [
            f'digraph {self._quote(graph_name)} {{',
            f'    rankdir={options.get("rankdir", "LR")};',
            '    node [shape=record, fontsize=10];',
        ]
        definitions = sorted(container.get_definitions().items())
        for service_id, definition in definitions:
            label = f"{service_id}|{definition.factory or definition.class_}"
            lines.append(f'    {self._quote(service_id)} [label={self._quote(label)}];')
        for alias, target in sorted(container.get_aliases().items()):
            lines.append(f'    {self._quote(alias)} [shape=ellipse, style=dotted];')
            lines.append(f'    {self._quote(alias)} -> {self._quote(target)} [style=dotted];')

        for service_id, definition in definitions:
            edges = [(ref, False) for ref in iter_references(definition.arguments)]
            for _, arguments in definition.calls:
                edges += [(ref, True) for ref in iter_references(arguments)]
            for reference, from_call in edges:
                style = ' [style=dashed]' if reference.optional or from_call else ''
                lines.append(f'    {self._quote(service_id)} -> {self._quote(reference.id)}{style};')

        lines.append('}')
        return '\n'.join(lines) + '\n'

    @staticmethod
    def _quote(value: str) -> str:
        return '"' + str(value).replace('\\', '\\\\').replace('"', '\\"') + '"'


DUMPERS: Dict[str, Type[Dumper]] = {
    PythonDumper.format: PythonDumper,
    XmlDumper.format: XmlDumper,
    YamlDumper.format: YamlDumper,
    JsonDumper.format: JsonDumper,
    GraphvizDumper.format: GraphvizDumper,
}


def get_dumper(dump_format: str) -> Dumper:
    try:
        return DUMPERS[str(dump_format)]()
    except KeyError:
        raise DumperException(
            f"unsupported dump format '{dump_format}' (expected one of: {', '.join(DUMPERS)})"
        )

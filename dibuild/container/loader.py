"""
Definition file loaders

Each loader parses one file and registers its parameters, services and
aliases on a ContainerBuilder. YAML and JSON share the same document
shape:

    parameters:
      mailer.transport: smtp
    services:
      mailer:
        class: app.mail.Mailer
        arguments: ['@transport', '%mailer.transport%']
        calls:
          - [set_logger, ['@?logger']]
        tags:
          - {name: app.listener, event: send}
        shared: true
      app.mailer: '@mailer'

XML uses <container><parameters/><services/></container> with
<service>, <argument>, <call> and <tag> elements.
"""

import json
import os
import re
import xml.etree.ElementTree as ET
from typing import Any, Dict, List, Type

import yaml

from .definition import Definition, InvalidBehavior, Reference, parse_reference, map_values
from .exceptions import ContainerException, LoaderException

SERVICE_KEYS = {'class', 'factory', 'arguments', 'calls', 'tags', 'shared', 'public', 'alias'}
TOP_LEVEL_KEYS = {'parameters', 'services'}

_INT = re.compile(r'[-+]?\d+')
_FLOAT = re.compile(r'[-+]?(\d+\.\d*|\.\d+)([eE][-+]?\d+)?')


class FileLoader:
    """Base loader: read a file, hand the parsed document to the builder"""

    extensions: tuple = ()

    def __init__(self, container):
        self.container = container

    def supports(self, path: str) -> bool:
        return path.lower().endswith(self.extensions)

    def load(self, path: str) -> None:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                content = f.read()
        except OSError as e:
            raise LoaderException(f"cannot read file: {e.strerror or e}", path)
        except UnicodeDecodeError as e:
            raise LoaderException(f"file is not valid UTF-8: {e.reason} at byte {e.start}", path)

        document = self.parse(content, path)
        try:
            self.register(document, path)
        except LoaderException:
            raise
        except ContainerException as e:
            raise LoaderException(str(e), path)
        self.container.add_resource(path)

    def parse(self, content: str, path: str) -> Dict[str, Any]:
        raise NotImplementedError

    def register(self, document: Dict[str, Any], path: str) -> None:
        raise NotImplementedError


class _MappingLoader(FileLoader):
    """Registers the parameters/services mapping shared by YAML and JSON"""

    def register(self, document: Dict[str, Any], path: str) -> None:
        if document is None:
            return
        if not isinstance(document, dict):
            raise LoaderException("the document root must be a mapping", path)

        unknown = set(document) - TOP_LEVEL_KEYS
        if unknown:
            raise LoaderException(
                f"unsupported top-level keys: {', '.join(sorted(map(str, unknown)))}", path
            )

        parameters = document.get('parameters') or {}
        if not isinstance(parameters, dict):
            raise LoaderException("'parameters' must be a mapping", path)
        for name, value in parameters.items():
            self.container.set_parameter(str(name), value)

        services = document.get('services') or {}
        if not isinstance(services, dict):
            raise LoaderException("'services' must be a mapping", path)
        for service_id, config in services.items():
            self._register_service(str(service_id), config, path)

    def _register_service(self, service_id: str, config: Any, path: str) -> None:
        if isinstance(config, str) and config.startswith('@') and not config.startswith('@@'):
            self.container.set_alias(service_id, config.lstrip('@'))
            return
        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise LoaderException(f"service '{service_id}' must be a mapping", path)

        unknown = set(config) - SERVICE_KEYS
        if unknown:
            raise LoaderException(
                f"service '{service_id}' has unsupported keys: {', '.join(sorted(map(str, unknown)))}",
                path
            )

        if 'alias' in config:
            self.container.set_alias(service_id, str(config['alias']))
            return

        arguments = config.get('arguments', [])
        if arguments is None:
            arguments = []
        if not isinstance(arguments, (list, dict)):
            raise LoaderException(f"service '{service_id}': 'arguments' must be a list or mapping", path)

        definition = Definition(
            class_=config.get('class') or (None if config.get('factory') else service_id),
            factory=config.get('factory'),
            arguments=map_values(arguments, parse_reference),
            calls=self._parse_calls(service_id, config.get('calls') or [], path),
            tags=self._parse_tags(service_id, config.get('tags') or [], path),
            shared=bool(config.get('shared', True)),
            public=bool(config.get('public', True)),
            file=path,
        )
        self.container.set_definition(service_id, definition)

    def _parse_calls(self, service_id: str, calls: Any, path: str) -> list:
        if not isinstance(calls, list):
            raise LoaderException(f"service '{service_id}': 'calls' must be a list", path)

        parsed = []
        for call in calls:
            if isinstance(call, dict):
                method, arguments = call.get('method'), call.get('arguments', [])
            elif isinstance(call, list) and 1 <= len(call) <= 2:
                method = call[0]
                arguments = call[1] if len(call) == 2 else []
            else:
                raise LoaderException(f"service '{service_id}': invalid method call {call!r}", path)
            if not method or not isinstance(method, str):
                raise LoaderException(f"service '{service_id}': method call without a method name", path)
            parsed.append((method, map_values(arguments or [], parse_reference)))
        return parsed

    def _parse_tags(self, service_id: str, tags: Any, path: str) -> List[Dict[str, Any]]:
        if not isinstance(tags, list):
            raise LoaderException(f"service '{service_id}': 'tags' must be a list", path)

        parsed = []
        for tag in tags:
            if isinstance(tag, str):
                tag = {'name': tag}
            if not isinstance(tag, dict) or not tag.get('name'):
                raise LoaderException(f"service '{service_id}': every tag needs a name", path)
            parsed.append(dict(tag))
        return parsed


class YamlFileLoader(_MappingLoader):
    """YAML service files (PyYAML safe_load)"""

    extensions = ('.yaml', '.yml')

    def parse(self, content: str, path: str) -> Dict[str, Any]:
        try:
            return yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise LoaderException(f"invalid YAML: {e}", path)


class JsonFileLoader(_MappingLoader):
    """JSON service files"""

    extensions = ('.json',)

    def parse(self, content: str, path: str) -> Dict[str, Any]:
        if not content.strip():
            return None
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise LoaderException(f"invalid JSON: {e}", path)


class XmlFileLoader(FileLoader):
    """XML service files"""

    extensions = ('.xml',)

    def parse(self, content: str, path: str) -> ET.Element:
        try:
            root = ET.fromstring(content)
        except ET.ParseError as e:
            raise LoaderException(f"invalid XML: {e}", path)
        if _tag(root) != 'container':
            raise LoaderException(f"root element must be <container>, got <{_tag(root)}>", path)
        return root

    def register(self, root: ET.Element, path: str) -> None:
        for section in root:
            name = _tag(section)
            if name == 'parameters':
                for parameter in _children(section, 'parameter'):
                    key = parameter.get('key')
                    if not key:
                        raise LoaderException("<parameter> needs a key attribute", path)
                    self.container.set_parameter(key, self._parse_value(parameter, 'parameter', path))
            elif name == 'services':
                for service in _children(section, 'service'):
                    self._register_service(service, path)
            else:
                raise LoaderException(f"unsupported element <{name}>", path)

    def _register_service(self, element: ET.Element, path: str) -> None:
        service_id = element.get('id')
        if not service_id:
            raise LoaderException("<service> needs an id attribute", path)

        if element.get('alias'):
            self.container.set_alias(service_id, element.get('alias'))
            return

        definition = Definition(
            class_=element.get('class') or (None if element.get('factory') else service_id),
            factory=element.get('factory'),
            arguments=self._parse_arguments(element, 'argument', path),
            shared=_to_bool(element.get('shared', 'true')),
            public=_to_bool(element.get('public', 'true')),
            file=path,
        )
        for child in element:
            name = _tag(child)
            if name == 'call':
                method = child.get('method')
                if not method:
                    raise LoaderException(f"service '{service_id}': <call> needs a method attribute", path)
                definition.add_method_call(method, self._parse_arguments(child, 'argument', path))
            elif name == 'tag':
                attributes = {k: _phpize(v) for k, v in child.attrib.items() if k != 'name'}
                if not child.get('name'):
                    raise LoaderException(f"service '{service_id}': <tag> needs a name attribute", path)
                definition.add_tag(child.get('name'), **attributes)
            elif name != 'argument':
                raise LoaderException(f"service '{service_id}': unsupported element <{name}>", path)
        self.container.set_definition(service_id, definition)

    def _parse_arguments(self, element: ET.Element, tag: str, path: str):
        children = _children(element, tag)
        keyed = [child.get('key') is not None for child in children]
        if any(keyed) and not all(keyed):
            raise LoaderException(f"cannot mix keyed and positional <{tag}> elements", path)
        if children and all(keyed):
            return {child.get('key'): self._parse_value(child, tag, path) for child in children}
        return [self._parse_value(child, tag, path) for child in children]

    def _parse_value(self, element: ET.Element, tag: str, path: str) -> Any:
        kind = element.get('type')
        if kind == 'service':
            on_invalid = element.get('on-invalid', InvalidBehavior.EXCEPTION.value)
            try:
                return Reference(element.get('id'), InvalidBehavior(on_invalid))
            except ValueError:
                raise LoaderException(f"invalid on-invalid value '{on_invalid}'", path)
        if kind == 'collection':
            return self._parse_arguments(element, tag, path)
        text = element.text or ''
        if kind == 'string':
            return text
        if kind is not None:
            raise LoaderException(f"unsupported <{tag}> type '{kind}'", path)
        return _phpize(text.strip())


def _tag(element: ET.Element) -> str:
    return element.tag.rsplit('}', 1)[-1]


def _children(element: ET.Element, name: str) -> List[ET.Element]:
    return [child for child in element if _tag(child) == name]


def _to_bool(value: str) -> bool:
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def _phpize(value: str) -> Any:
    """Convert an XML attribute/text value to the scalar it spells."""
    lowered = value.lower()
    if lowered == 'true':
        return True
    if lowered == 'false':
        return False
    if lowered == 'null':
        return None
    if _INT.fullmatch(value):
        return int(value)
    if _FLOAT.fullmatch(value):
        return float(value)
    return value


LOADERS: List[Type[FileLoader]] = [YamlFileLoader, XmlFileLoader, JsonFileLoader]


def get_loader(container, path: str) -> FileLoader:
    """Pick a loader by file extension."""
    for loader_class in LOADERS:
        loader = loader_class(container)
        if loader.supports(path):
            return loader
    raise LoaderException(
        f"no loader for '{os.path.splitext(path)[1] or path}' files", path
    )


def load_file(container, path: str) -> None:
    get_loader(container, path).load(path)

"""
Tests for container dumpers.

Story Test: every dump format serializes a compiled builder; the text
formats load back into an equivalent builder and the Python format runs.
"""

import collections
import fractions
import json
import os
import sys
import xml.etree.ElementTree as ET

import pytest
import yaml

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dibuild.container import (
    CircularReferenceException,
    Container,
    ContainerBuilder,
    DUMPERS,
    DumperException,
    InvalidBehavior,
    Reference,
    ServiceNotFoundException,
    get_dumper,
    load_file,
)


def _builder() -> ContainerBuilder:
    builder = ContainerBuilder()
    builder.set_parameter('numerator', 3)
    builder.set_parameter('discount', '10%%')
    builder.set_parameter('handle', '@someone')
    builder.register('half', 'fractions.Fraction', arguments=['%numerator%', 6])
    builder.register('registry', 'collections.OrderedDict', arguments={'a': 1})
    builder.register('queue', 'collections.deque', arguments=[[Reference('half')]], shared=False) \
        .add_method_call('append', [Reference('missing', InvalidBehavior.NULL)])
    builder.register('note', 'types.SimpleNamespace', arguments={
        'label': '@literal', 'discount': '%discount%', 'registry': Reference('app.registry'),
    }).add_tag('app.note', priority=5)
    builder.set_alias('app.registry', 'registry')
    builder.compile()
    return builder


def _load_python(code: str):
    namespace = {}
    exec(compile(code, 'container.py', 'exec'), namespace)
    return namespace


class TestPythonDumper:
    """Test PythonDumper output."""

    def setup_method(self):
        """Set up test fixtures."""
        self.builder = _builder()

    def test_generated_container_runs(self):
        """Test: the generated class builds the services."""
        code = get_dumper('python').dump(self.builder)
        container_class = _load_python(code)['CompiledContainer']
        container = container_class()

        assert isinstance(container, Container)
        assert container.get('half') == fractions.Fraction(1, 2)
        assert container.get('registry') == collections.OrderedDict(a=1)
        assert container.get('app.registry') is container.get('registry')

        queue = container.get('queue')
        assert list(queue) == [fractions.Fraction(1, 2), None]
        assert container.get('queue') is not queue

        note = container.get('note')
        assert note.label == '@literal'
        assert note.discount == '10%'
        assert note.registry is container.get('registry')

    def test_parameters_and_ids(self):
        """Test: parameters and service ids are exposed."""
        container = _load_python(get_dumper('python').dump(self.builder))['CompiledContainer']()

        assert container.get_parameter('numerator') == 3
        assert container.get_parameter('handle') == '@someone'
        assert container.has('app.registry')
        assert not container.has('missing')
        assert container.get_service_ids() == ['app.registry', 'half', 'note', 'queue', 'registry']

    def test_unknown_service(self):
        """Test: unknown ids raise unless a default is given."""
        container = _load_python(get_dumper('python').dump(self.builder))['CompiledContainer']()

        with pytest.raises(ServiceNotFoundException):
            container.get('missing')
        assert container.get('missing', None) is None

    def test_class_name_option(self):
        """Test: class_name renames the generated class."""
        code = get_dumper('python').dump(self.builder, class_name='AppContainer')

        assert 'class AppContainer(Container):' in code
        assert 'AppContainer' in _load_python(code)

    def test_invalid_class_name(self):
        """Test: the class name must be an identifier."""
        with pytest.raises(DumperException):
            get_dumper('python').dump(self.builder, class_name='not valid')

    def test_unrenderable_value(self):
        """Test: values without a Python literal fail."""
        builder = ContainerBuilder()
        builder.register('a', 'app.A', arguments=[object()])
        builder.compile()

        with pytest.raises(DumperException):
            get_dumper('python').dump(builder)

    def test_runtime_cycle(self):
        """Test: a cycle the checks cannot see is still caught at runtime."""

        class Looping(Container):
            METHODS = {'a': '_get_a_service'}

            def _get_a_service(self):
                return self.get('a')

        with pytest.raises(CircularReferenceException):
            Looping().get('a')

    def test_requires_compiled_builder(self):
        """Test: dumping an uncompiled builder fails."""
        with pytest.raises(DumperException, match='compiled'):
            get_dumper('python').dump(ContainerBuilder())


class TestTextDumpers:
    """Test YAML, JSON and XML dumpers."""

    def setup_method(self):
        """Set up test fixtures."""
        self.builder = _builder()

    @pytest.mark.parametrize('dump_format, extension', [
        ('yaml', 'yaml'),
        ('json', 'json'),
        ('xml', 'xml'),
    ])
    def test_load_back(self, dump_format, extension, tmp_path):
        """Test: a dumped container loads and compiles to the same services."""
        path = tmp_path / f'dumped.{extension}'
        path.write_text(get_dumper(dump_format).dump(self.builder), encoding='utf-8')

        reloaded = ContainerBuilder()
        load_file(reloaded, str(path))
        reloaded.compile()

        assert reloaded.get_parameters() == self.builder.get_parameters()
        assert reloaded.get_aliases() == self.builder.get_aliases()
        for service_id, definition in self.builder.get_definitions().items():
            other = reloaded.get_definition(service_id)
            assert other.class_ == definition.class_
            assert other.arguments == definition.arguments
            assert other.calls == definition.calls
            assert other.tags == definition.tags
            assert other.shared == definition.shared

    def test_yaml_document(self):
        """Test: YAML output is a parameters/services mapping."""
        document = yaml.safe_load(get_dumper('yaml').dump(self.builder))

        assert document['services']['app.registry'] == '@registry'
        assert document['services']['queue']['shared'] is False
        assert document['services']['note']['arguments']['label'] == '@@literal'

    def test_json_indent(self):
        """Test: the indent dump option is honored."""
        output = get_dumper('json').dump(self.builder, indent=2)

        assert json.loads(output)['parameters']['numerator'] == 3
        assert '\n  "parameters"' in output

    def test_xml_document(self):
        """Test: XML output has a container root and a string typed parameter."""
        root = ET.fromstring(get_dumper('xml').dump(self.builder).split('?>', 1)[1])

        assert root.tag == 'container'
        ids = [service.get('id') for service in root.find('services')]
        assert ids == ['half', 'note', 'queue', 'registry', 'app.registry']


class TestGraphvizDumper:
    """Test GraphvizDumper."""

    def test_edges(self):
        """Test: nodes, alias edges and dashed optional edges."""
        output = get_dumper('graphviz').dump(_builder(), graph_name='app')

        assert output.startswith('digraph "app" {')
        assert '"half" [label="half|fractions.Fraction"];' in output
        assert '"app.registry" -> "registry" [style=dotted];' in output
        assert '"note" -> "registry";' in output
        assert '"queue" -> "missing" [style=dashed];' in output


class TestGetDumper:
    """Test dumper lookup."""

    def test_registered_formats(self):
        """Test: every dump format has a dumper."""
        assert set(DUMPERS) == {'python', 'xml', 'yaml', 'json', 'graphviz'}

    def test_unknown_format(self):
        """Test: unknown formats raise DumperException."""
        with pytest.raises(DumperException, match='php'):
            get_dumper('php')

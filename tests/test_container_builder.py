"""
Tests for the embedded container framework: builder, definitions and passes.
"""

import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dibuild.container import (
    CallablePass,
    CircularReferenceException,
    CompilerPass,
    ContainerBuilder,
    Definition,
    FrozenContainerException,
    InvalidBehavior,
    InvalidDefinitionException,
    ParameterCircularReferenceException,
    ParameterNotFoundException,
    Reference,
    ServiceNotFoundException,
)
from dibuild.container.definition import parse_reference


class TestDefinition:
    """Test Definition and Reference helpers."""

    def test_parse_reference(self):
        """Test: @id, @?id and @@ escapes."""
        assert parse_reference('@mailer') == Reference('mailer')
        assert parse_reference('@?logger') == Reference('logger', InvalidBehavior.NULL)
        assert parse_reference('@@handle') == '@handle'
        assert parse_reference('plain') == 'plain'
        assert parse_reference(3) == 3

    def test_reference_str(self):
        """Test: references print in the file syntax."""
        assert str(Reference('a')) == '@a'
        assert str(Reference('a', InvalidBehavior.NULL)) == '@?a'
        assert Reference('a', InvalidBehavior.NULL).optional

    def test_tags(self):
        """Test: tag lookup returns attributes without the name."""
        definition = Definition(class_='app.Handler')
        definition.add_tag('listener', event='send').add_tag('listener', event='fail').add_tag('other')

        assert definition.has_tag('listener')
        assert definition.get_tag('listener') == [{'event': 'send'}, {'event': 'fail'}]
        assert not definition.has_tag('missing')

    def test_invalid_arguments(self):
        """Test: arguments must be a list or mapping."""
        with pytest.raises(InvalidDefinitionException):
            Definition(class_='app.Handler', arguments='nope')

    def test_keyword_arguments_reject_positional(self):
        """Test: add_argument on keyword arguments is an error."""
        definition = Definition(class_='app.Handler', arguments={'a': 1})

        with pytest.raises(InvalidDefinitionException):
            definition.add_argument(2)


class TestContainerBuilder:
    """Test ContainerBuilder registration."""

    def setup_method(self):
        """Set up test fixtures."""
        self.builder = ContainerBuilder()

    def test_register(self):
        """Test: register defaults the class to the id."""
        self.builder.register('collections.OrderedDict')
        self.builder.register('queue', 'collections.deque', arguments=[[1]])

        assert self.builder.get_definition('collections.OrderedDict').class_ == 'collections.OrderedDict'
        assert self.builder.get_definition('queue').arguments == [[1]]

    def test_definition_needs_dotted_path(self):
        """Test: class must be an import path."""
        with pytest.raises(InvalidDefinitionException):
            self.builder.register('mailer', 'Mailer')

    def test_definition_needs_class_or_factory(self):
        """Test: an empty definition is rejected."""
        with pytest.raises(InvalidDefinitionException):
            self.builder.set_definition('mailer', Definition())

    def test_alias_replaces_definition(self):
        """Test: the last registration of an id wins."""
        self.builder.register('mailer', 'app.Mailer')
        self.builder.register('smtp', 'app.Smtp')
        self.builder.set_alias('mailer', 'smtp')

        assert not self.builder.has_definition('mailer')
        assert self.builder.get_alias('mailer') == 'smtp'
        assert self.builder.find_definition('mailer').class_ == 'app.Smtp'

    def test_self_alias(self):
        """Test: an alias cannot point to itself."""
        with pytest.raises(InvalidDefinitionException):
            self.builder.set_alias('a', 'a')

    def test_missing_service(self):
        """Test: unknown ids raise ServiceNotFoundException."""
        with pytest.raises(ServiceNotFoundException):
            self.builder.get_definition('missing')

    def test_find_tagged_service_ids(self):
        """Test: tagged services are returned with their attributes."""
        self.builder.register('a', 'app.A').add_tag('listener', event='x')
        self.builder.register('b', 'app.B')

        assert self.builder.find_tagged_service_ids('listener') == {'a': [{'event': 'x'}]}

    def test_compiler_pass_priority(self):
        """Test: passes run by priority, then registration order."""
        calls = []
        self.builder.add_compiler_pass(CallablePass(lambda c: calls.append('low')), -5)
        self.builder.add_compiler_pass(CallablePass(lambda c: calls.append('first')))
        self.builder.add_compiler_pass(CallablePass(lambda c: calls.append('high')), 10)
        self.builder.add_compiler_pass(CallablePass(lambda c: calls.append('second')))

        self.builder.compile()

        assert calls == ['high', 'first', 'second', 'low']

    def test_compiler_pass_needs_process(self):
        """Test: objects without process() are rejected."""
        with pytest.raises(InvalidDefinitionException):
            self.builder.add_compiler_pass(object())

    def test_frozen_after_compile(self):
        """Test: a compiled builder cannot be modified."""
        self.builder.compile()

        assert self.builder.is_compiled
        with pytest.raises(FrozenContainerException):
            self.builder.register('a', 'app.A')
        with pytest.raises(FrozenContainerException):
            self.builder.compile()


class TestCompilation:
    """Test the built-in compiler passes."""

    def setup_method(self):
        """Set up test fixtures."""
        self.builder = ContainerBuilder()

    def test_parameters_resolved(self):
        """Test: whole and embedded placeholders resolve, %% is a literal %."""
        self.builder.set_parameter('host', 'mail.local')
        self.builder.set_parameter('port', 25)
        self.builder.set_parameter('dsn', 'smtp://%host%:%port%')
        self.builder.set_parameter('ratio', '100%%')
        self.builder.register('mailer', 'app.Mailer', arguments=['%dsn%', '%port%', {'p': '%ratio%'}])

        self.builder.compile()

        assert self.builder.get_parameter('dsn') == 'smtp://mail.local:25'
        assert self.builder.get_parameter('ratio') == '100%'
        assert self.builder.get_definition('mailer').arguments == ['smtp://mail.local:25', 25, {'p': '100%'}]

    def test_class_placeholder(self):
        """Test: class paths may come from parameters."""
        self.builder.set_parameter('mailer.class', 'app.Mailer')
        self.builder.register('mailer', '%mailer.class%')

        self.builder.compile()

        assert self.builder.get_definition('mailer').class_ == 'app.Mailer'

    def test_missing_parameter(self):
        """Test: unknown placeholders fail compilation."""
        self.builder.register('mailer', 'app.Mailer', arguments=['%missing%'])

        with pytest.raises(ParameterNotFoundException) as exc_info:
            self.builder.compile()

        assert exc_info.value.source_id == 'mailer'

    def test_circular_parameters(self):
        """Test: parameters referencing each other fail."""
        self.builder.set_parameter('a', '%b%')
        self.builder.set_parameter('b', 'x%a%')

        with pytest.raises(ParameterCircularReferenceException):
            self.builder.compile()

    def test_non_scalar_interpolation(self):
        """Test: a list parameter cannot be embedded in a string."""
        self.builder.set_parameter('hosts', ['a', 'b'])
        self.builder.set_parameter('label', 'hosts: %hosts%')

        with pytest.raises(InvalidDefinitionException):
            self.builder.compile()

    def test_alias_chain_flattened(self):
        """Test: alias chains point at the concrete service and references are rewritten."""
        self.builder.register('smtp', 'app.Smtp')
        self.builder.set_alias('transport', 'smtp')
        self.builder.set_alias('mailer.transport', 'transport')
        self.builder.register('mailer', 'app.Mailer', arguments=[Reference('mailer.transport')])

        self.builder.compile()

        assert self.builder.get_aliases() == {'transport': 'smtp', 'mailer.transport': 'smtp'}
        assert self.builder.get_definition('mailer').arguments == [Reference('smtp')]

    def test_alias_to_missing_service(self):
        """Test: an alias to nothing fails."""
        self.builder.set_alias('mailer', 'missing')

        with pytest.raises(ServiceNotFoundException):
            self.builder.compile()

    def test_alias_cycle(self):
        """Test: aliases pointing at each other fail."""
        self.builder.set_alias('a', 'b')
        self.builder.set_alias('b', 'a')

        with pytest.raises(CircularReferenceException):
            self.builder.compile()

    def test_missing_reference(self):
        """Test: a required reference to an unknown service fails."""
        self.builder.register('mailer', 'app.Mailer', arguments=[Reference('transport')])

        with pytest.raises(ServiceNotFoundException) as exc_info:
            self.builder.compile()

        assert exc_info.value.source_id == 'mailer'

    def test_optional_reference(self):
        """Test: an optional reference to an unknown service compiles."""
        self.builder.register('mailer', 'app.Mailer', arguments=[Reference('logger', InvalidBehavior.NULL)])

        self.builder.compile()

        assert self.builder.is_compiled

    def test_constructor_cycle(self):
        """Test: a cycle through constructor arguments fails."""
        self.builder.register('a', 'app.A', arguments=[Reference('b')])
        self.builder.register('b', 'app.B', arguments=[Reference('c')])
        self.builder.register('c', 'app.C', arguments=[Reference('a')])

        with pytest.raises(CircularReferenceException) as exc_info:
            self.builder.compile()

        assert exc_info.value.chain == ['a', 'b', 'c', 'a']

    def test_long_constructor_chain(self):
        """Test: a dependency chain deeper than the recursion limit compiles."""
        depth = sys.getrecursionlimit() + 500
        for index in range(depth):
            self.builder.register(f's{index}', 'app.Service', arguments=[Reference(f's{index + 1}')])
        self.builder.register(f's{depth}', 'app.Service')

        self.builder.compile()

        assert self.builder.is_compiled

    def test_long_constructor_cycle(self):
        """Test: a cycle at the end of a deep chain is reported with its members."""
        depth = sys.getrecursionlimit() + 500
        for index in range(depth):
            self.builder.register(f's{index}', 'app.Service', arguments=[Reference(f's{index + 1}')])
        self.builder.register(f's{depth}', 'app.Service', arguments=[Reference(f's{depth - 1}')])

        with pytest.raises(CircularReferenceException) as exc_info:
            self.builder.compile()

        assert exc_info.value.chain == [f's{depth - 1}', f's{depth}', f's{depth - 1}']

    def test_setter_cycle_allowed(self):
        """Test: method calls may close a loop."""
        self.builder.register('a', 'app.A', arguments=[Reference('b')])
        self.builder.register('b', 'app.B').add_method_call('set_a', [Reference('a')])

        self.builder.compile()

        assert self.builder.is_compiled

    def test_user_pass_runs_before_checks(self):
        """Test: a user pass can add the service a reference needs."""

        class AddTransport(CompilerPass):
            def process(self, container):
                container.register('transport', 'app.Transport')

        self.builder.register('mailer', 'app.Mailer', arguments=[Reference('transport')])
        self.builder.add_compiler_pass(AddTransport())

        self.builder.compile()

        assert self.builder.has_definition('transport')

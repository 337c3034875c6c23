"""
Pytest configuration file.
"""

import logging
import os
import sys
import textwrap
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep DIBUILD_* variables from the developer's shell out of the tests."""
    for name in list(os.environ):
        if name.startswith('DIBUILD_'):
            monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def reset_logging():
    """Detach dibuild handlers between tests."""
    yield
    from dibuild.logging import manager
    if manager.LogManager._instance is not None:
        manager.LogManager().reset()
    for name in manager.LogManager.LOGGER_NAMES:
        logger = logging.getLogger(name)
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)


@pytest.fixture
def write_file(tmp_path):
    """Create a file below tmp_path from dedented text; returns its path as str."""

    def _write(relative: str, content: str = '') -> str:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content).lstrip('\n'), encoding='utf-8')
        return str(path)

    return _write


@pytest.fixture
def service_tree(write_file, tmp_path):
    """
    A small project:

        config/services.yaml     parameters + two services + alias
        config/extra/services.xml  one service depending on 'registry'
        config/tags.cpass.py     compiler pass adding a method call
    """
    write_file('config/services.yaml', """
        parameters:
          greeting: hello
          registry.class: collections.OrderedDict

        services:
          registry:
            class: '%registry.class%'
          queue:
            class: collections.deque
            arguments: [[1, 2]]
            tags: [worker]
          app.queue: '@queue'
    """)
    write_file('config/extra/services.xml', """
        <?xml version="1.0" encoding="UTF-8"?>
        <container>
            <services>
                <service id="holder" class="types.SimpleNamespace">
                    <argument key="registry" type="service" id="registry"/>
                    <argument key="label">%greeting% world</argument>
                </service>
            </services>
        </container>
    """)
    write_file('config/tags.cpass.py', """
        from dibuild.container import CompilerPass


        class TagWorkersPass(CompilerPass):
            priority = 5

            def process(self, container):
                for service_id in container.find_tagged_service_ids('worker'):
                    container.get_definition(service_id).add_method_call('append', [3])
    """)
    return tmp_path

def test_import_package_and_version_smoke():
    import instantly

    # __version__ should be a string (installed metadata or "unknown")
    assert isinstance(instantly.__version__, str)


def test_public_names_exported():
    import instantly

    for name in instantly.__all__:
        assert hasattr(instantly, name), name


def test_main_module_imports():
    from instantly.__main__ import main

    assert callable(main)


def test_config_module_executes_from_scratch(monkeypatch):
    # A fresh namespace catches module-level code that runs before its helpers exist
    import importlib.util
    import sys

    import instantly.config

    spec = importlib.util.spec_from_file_location("instantly._config_fresh", instantly.config.__file__)
    module = importlib.util.module_from_spec(spec)
    monkeypatch.setitem(sys.modules, spec.name, module)
    spec.loader.exec_module(module)

    assert module.DEFAULT_CONFIG.host == "api.instantly.ai"

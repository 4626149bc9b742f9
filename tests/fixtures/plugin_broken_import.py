import releasekit_fixture_missing_dependency  # noqa: F401


def default(plugin_config, context):
    return None

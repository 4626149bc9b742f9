def publish(plugin_config, context):
    return {"published": True, "channel": plugin_config.get("channel")}

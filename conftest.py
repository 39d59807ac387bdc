pytest_plugins = ["svcprobe.pytest_plugin"]

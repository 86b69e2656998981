# 每个游戏一个子包：blueprints/games/<slug>/plugin.py，由 plugins.register_plugins 自动发现

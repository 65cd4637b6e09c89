import logging

import aws_cdk as cdk
from message_server_cdk.configs.message_server_cfg import get_cfg
from message_server_cdk.configs.naming import resource_name
from message_server_cdk.stacks.message_server_stack import MessageServerStack

app = cdk.App()
cfg = get_cfg(app)

logging.basicConfig(level=cfg.log_level, format="%(levelname)s %(name)s: %(message)s")

MessageServerStack(
    app,
    resource_name("MessageServerStack", cfg.stage),
    ctx=cfg.stage,
    env=cfg.stage.environment,
)

app.synth()

from rich.console import Console
from rich.pretty import pprint

from parley import *

__prog__ = "moderator"

ban = (
    command("ban", "ban a member from the server", aliases=("b",))
    .add_mentionable_option(lambda option: (
        option
        .set_name("user")
        .set_description("the member to ban")
        .set_kinds("user")
    ))
    .add_number_option(lambda option: (
        option
        .set_name("days")
        .set_description("days of messages to delete")
        .set_min_value(0)
        .set_max_value(7)
        .set_integer()
        .set_required(False)
        .set_default(0)
    ))
    .add_string_option(lambda option: (
        option
        .set_name("reason")
        .set_description("why the member is banned")
        .set_required(False)
        .set_rest()
    ))
    .build()
)


if __name__ == '__main__':
    console = Console()
    pprint(ban)
    console.print(ban)
    console.print(ban.validate('!ban <@80351110224678912> 1 "spamming links" again'))
    ban.validate('!ban <#1234> 9').report(fancy=True)

import asyncio

from bedrockstat import BedrockStatError, async_query

SERVERS = [
    "play.inpvp.net",
    "play.lbsg.net",
    "mco.cubecraft.net",
    "geo.hivebedrock.network",
    "play.galaxite.net",
]


async def main():
    results = await asyncio.gather(
        *(async_query(server) for server in SERVERS), return_exceptions=True
    )
    for server, status in zip(SERVERS, results):
        print("######################################################################")
        if isinstance(status, BedrockStatError):
            print(f"{server} is offline: {status} ({status.status})")
            continue
        if isinstance(status, BaseException):
            raise status
        print(
            f"{server} is online running version {status.version.name} "
            f"with {status.players.online} out of {status.players.max} players."
        )
        if status.server.gamemode:
            print(f"Game mode: {status.server.gamemode}")
        print(f"Message of the day: {status.server.motd}")
        print(f"Message of the day without formatting: {status.server.stripped_motd}")
        print(f"Latency: {status.latency}ms")
        print(f"Reply from: {status.server.remote_host}")

asyncio.run(main())

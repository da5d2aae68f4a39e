import json

from goalbot.messaging import build_next_game_embed
from goalbot.sources.nhl import NhlClient


def main():
    game = NhlClient().fetch_next_scheduled_game()
    print(json.dumps(build_next_game_embed(game), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
# -*- coding: utf-8 -*-


import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace

from lotto_analysis.games import GAMES, get_game
from lotto_analysis.types import GenerationMode
from other_utils.session import LotteryController, Phase, format_session
from web_utils.lotto_stats_client import ClientConfig, LottoStatsClient
from webapi.schemas import draw_to_wire


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Estadísticas de Mega Millions y Powerball")
    ap.add_argument("game", choices=sorted({*GAMES, *(g.endpoint_slug for g in GAMES.values())}))
    ap.add_argument("--base-url", default=None)
    ap.add_argument("--timeout", type=float, default=None)
    ap.add_argument("--page-size", type=int, default=None)
    ap.add_argument("--more", type=int, default=0, help="páginas adicionales de resultados")
    ap.add_argument("--check", type=int, nargs=5, metavar="N", default=None)
    ap.add_argument("--special", type=int, default=None)
    ap.add_argument("--generate", choices=[m.value for m in GenerationMode], default=None)
    ap.add_argument("--json", action="store_true", help="volcar los sorteos cargados como JSON")
    ap.add_argument("--filter", default=None, metavar="TEXT", help="mostrar la frecuencia de los números que contienen TEXT")
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap


def _config(args) -> ClientConfig:
    config = ClientConfig.from_env()
    overrides = {
        "base_url": args.base_url,
        "timeout": args.timeout,
        "page_size": args.page_size,
    }
    return replace(config, **{k: v for k, v in overrides.items() if v is not None})


async def run(args, client: LottoStatsClient) -> int:
    game = get_game(args.game)
    controller = LotteryController(game, client)

    await controller.load_all()
    for _ in range(args.more):
        if not controller.state.paging.has_more:
            break
        await controller.load_more()

    if args.generate:
        await controller.generate_combination(args.generate)

    if args.check:
        for n in args.check:
            controller.toggle_number(n)
        if args.special is not None:
            controller.select_special_ball(args.special)
        await controller.check_combination()

    if args.json:
        print(json.dumps([draw_to_wire(d) for d in controller.state.paging.results], indent=2))
    else:
        print(format_session(controller.state, game, number_filter=args.filter))

    return 1 if controller.state.lifecycle.phase is Phase.FAILED else 0


def main(argv=None) -> int:
    """
    Carga las estadísticas del juego indicado y las muestra por consola
    :return: 0 si todo es correcto, 1 si alguna petición ha fallado
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    with LottoStatsClient(_config(args)) as client:
        return asyncio.run(run(args, client))


if __name__ == '__main__':
    sys.exit(main())

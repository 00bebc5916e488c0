from __future__ import annotations

from pathlib import Path

import click

from layout_valley.bigrams import ALPHABET, load_bigram_frequencies
from layout_valley.climber import HillClimber
from layout_valley.generator import LayoutGenerator
from layout_valley.paths import DEFAULT_BIGRAM_FILE, DEFAULT_DB_PATH
from layout_valley.store import ResultStore


@click.command()
@click.option("--layout", "-l", default=None, help="開始レイアウト（省略時はランダム）")
@click.option(
    "--bigrams",
    "-b",
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    default=DEFAULT_BIGRAM_FILE,
    show_default=True,
    help="バイグラム頻度ファイル",
)
@click.option("--alphabet", default=ALPHABET, show_default=True)
@click.option("--seed", type=int, default=None, help="ランダム開始時のシード")
@click.option("--save", is_flag=True, help="結果の谷をDBに保存する")
@click.option("--db", type=click.Path(path_type=Path), default=DEFAULT_DB_PATH, show_default=True)
def main(  # noqa: PLR0913
    layout: str | None,
    bigrams: Path,
    alphabet: str,
    seed: int | None,
    save: bool,
    db: Path,
) -> None:
    """
    1つのレイアウトから谷まで降下し、各ステップのコストを表示する。
    """
    climber = HillClimber(load_bigram_frequencies(bigrams), alphabet)
    start = layout or LayoutGenerator(alphabet, seed=seed).random_layout()

    try:
        costs = list(climber.trajectory(start))
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--layout") from exc

    click.echo(f"start: {start}")
    for step, cost in enumerate(costs):
        click.echo(f"  step {step:>3}: {cost:.4f}")

    valley = climber.climb(start)
    click.echo(f"valley: {valley.layout} cost={valley.cost:.4f} steps={valley.steps}")

    if save:
        with ResultStore(db) as store:
            inserted = store.insert(valley)
        click.echo("saved" if inserted else "already stored")


if __name__ == "__main__":
    main()

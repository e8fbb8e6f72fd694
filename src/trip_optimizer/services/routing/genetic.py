"""Genetic algorithm TSP solver.

Tours are permutations of waypoint indices with the origin pinned at position 0.
Every operator (shuffle, order crossover, swap mutation) works on positions
``1..n-1`` only, so each individual is always a valid trip from the origin.

Fitness is the reciprocal of the closed tour length (including the edge back to
the origin). The best individual seen over the whole run is tracked separately
from the population so the reported solution never gets worse from one
generation to the next.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, replace
from typing import Callable, MutableSequence, Optional, Protocol, Sequence

from ...config import settings
from .costs import round_half_up
from .matrix import DistanceMatrix, validate_distance_matrix
from .models import TSPSolution
from .tours import evaluate_tour

ProgressCallback = Callable[[TSPSolution, int], None]


class RandomSource(Protocol):
    """Subset of :class:`random.Random` used by the solver."""

    def random(self) -> float: ...

    def randrange(self, start: int, stop: int | None = None, step: int = 1) -> int: ...

    def shuffle(self, x: MutableSequence) -> None: ...


def _clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


@dataclass(slots=True, frozen=True)
class GeneticParameters:
    population_size: int
    generations: int
    mutation_rate: float
    elite_size: int

    @classmethod
    def adaptive(cls, stop_count: int) -> "GeneticParameters":
        """Size the search from the waypoint count."""
        n = max(1, stop_count)
        population_size = int(_clamp(n * 10, 50, 200))
        return cls(
            population_size=population_size,
            generations=int(_clamp(n * 20, 100, 500)),
            mutation_rate=_clamp(0.8 / n, 0.01, 0.05),
            elite_size=round_half_up(population_size * 0.15),
        )

    @classmethod
    def extended(cls, stop_count: int) -> "GeneticParameters":
        """Wider population and longer run used for interactive trip planning."""
        population_size = max(100, stop_count * 15)
        return cls(
            population_size=population_size,
            generations=max(200, stop_count * 25),
            mutation_rate=0.02,
            elite_size=round_half_up(population_size * 0.2),
        )

    @classmethod
    def for_profile(cls, profile: str, stop_count: int) -> "GeneticParameters":
        if profile == "adaptive":
            return cls.adaptive(stop_count)
        if profile == "extended":
            return cls.extended(stop_count)
        raise ValueError(f"Unknown genetic algorithm profile '{profile}'.")

    def with_overrides(
        self,
        *,
        population_size: int | None = None,
        generations: int | None = None,
        mutation_rate: float | None = None,
        elite_size: int | None = None,
    ) -> "GeneticParameters":
        updated = replace(
            self,
            population_size=population_size if population_size is not None else self.population_size,
            generations=generations if generations is not None else self.generations,
            mutation_rate=mutation_rate if mutation_rate is not None else self.mutation_rate,
        )
        if elite_size is not None:
            return replace(updated, elite_size=elite_size)
        if population_size is not None:
            # Keep the elite share when only the population is resized.
            share = self.elite_size / self.population_size if self.population_size else 0.15
            return replace(updated, elite_size=round_half_up(population_size * share))
        return updated

    def validate(self) -> None:
        if self.population_size < 1:
            raise ValueError("population_size must be at least 1.")
        if self.generations < 0:
            raise ValueError("generations must not be negative.")
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise ValueError("mutation_rate must be between 0 and 1.")
        if self.elite_size < 0:
            raise ValueError("elite_size must not be negative.")


def tournament_size(population_size: int) -> int:
    return max(1, min(5, math.ceil(population_size / 10)))


def random_tour(size: int, rng: RandomSource) -> list[int]:
    """Fisher-Yates shuffle of ``1..size-1`` behind the fixed origin."""
    stops = list(range(1, size))
    rng.shuffle(stops)
    return [0, *stops]


def initial_population(
    population_size: int, distance_matrix: DistanceMatrix, rng: RandomSource
) -> list[TSPSolution]:
    size = len(distance_matrix)
    return [evaluate_tour(random_tour(size, rng), distance_matrix) for _ in range(population_size)]


def select_parent(population: Sequence[TSPSolution], rng: RandomSource) -> TSPSolution:
    """Tournament selection, sampling with replacement."""
    best = population[rng.randrange(len(population))]
    for _ in range(1, tournament_size(len(population))):
        candidate = population[rng.randrange(len(population))]
        if candidate.fitness > best.fitness:
            best = candidate
    return best


def order_crossover(parent1: Sequence[int], parent2: Sequence[int], rng: RandomSource) -> list[int]:
    """Order crossover (OX) over the non-origin genes.

    A slice ``[start, end)`` of ``parent1`` is copied in place; the remaining slots,
    from ``end`` onward and wrapping around, are filled with ``parent2``'s genes in
    the order they appear in ``parent2`` starting at ``end``, skipping duplicates.
    """
    genes1 = list(parent1[1:])
    genes2 = list(parent2[1:])
    length = len(genes1)
    if length < 2:
        return [parent1[0], *genes1]

    start = rng.randrange(length)
    end = start + rng.randrange(length - start)

    child: list[Optional[int]] = [None] * length
    child[start:end] = genes1[start:end]
    present = set(genes1[start:end])

    position = end % length
    for offset in range(length):
        gene = genes2[(end + offset) % length]
        if gene in present:
            continue
        child[position] = gene
        present.add(gene)
        position = (position + 1) % length

    return [parent1[0], *child]


def swap_mutation(tour: Sequence[int], mutation_rate: float, rng: RandomSource) -> list[int]:
    mutated = list(tour)
    size = len(mutated)
    if size < 3:
        return mutated
    for i in range(1, size):
        if rng.random() < mutation_rate:
            j = rng.randrange(1, size)
            mutated[i], mutated[j] = mutated[j], mutated[i]
    return mutated


def _best_of(population: Sequence[TSPSolution]) -> TSPSolution:
    best = population[0]
    for individual in population[1:]:
        if individual.fitness > best.fitness:
            best = individual
    return best


def solve_tsp(
    distance_matrix: DistanceMatrix,
    parameters: GeneticParameters | None = None,
    *,
    rng: RandomSource | None = None,
    on_progress: ProgressCallback | None = None,
) -> TSPSolution:
    """Evolve a short closed tour starting at index 0.

    Runs for exactly ``parameters.generations`` generations; ``on_progress`` is
    called once per generation with the best solution found so far.
    """
    size = validate_distance_matrix(distance_matrix)

    if size < 2:
        return TSPSolution(tour=(0,), total_distance=0.0, fitness=1.0)
    if size == 2:
        return evaluate_tour([0, 1], distance_matrix)

    params = parameters or GeneticParameters.for_profile(settings.ga_parameter_profile, size)
    params.validate()
    rng = rng or random.Random(settings.ga_seed)
    elite_size = min(params.elite_size, params.population_size)

    population = initial_population(params.population_size, distance_matrix, rng)
    best = _best_of(population)

    for generation in range(params.generations):
        population.sort(key=lambda individual: individual.fitness, reverse=True)
        next_population = population[:elite_size]

        while len(next_population) < params.population_size:
            parent1 = select_parent(population, rng)
            parent2 = select_parent(population, rng)
            child = order_crossover(parent1.tour, parent2.tour, rng)
            child = swap_mutation(child, params.mutation_rate, rng)
            next_population.append(evaluate_tour(child, distance_matrix))

        population = next_population
        generation_best = _best_of(population)
        if generation_best.fitness > best.fitness:
            best = generation_best

        if on_progress is not None:
            on_progress(best, generation)

    return best

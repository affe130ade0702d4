from itertools import combinations
from typing import NamedTuple, Optional, Sequence
from uuid import UUID

from restaurant_pos.core.constants import MIN_COMBINED_TABLES


class TableSeats(NamedTuple):
    """Стол с эффективной вместимостью для перебора комбинаций."""

    id: UUID
    capacity: int


def find_table_combination(
    tables: Sequence[TableSeats],
    target_capacity: int,
    max_tables: int = 3,
) -> Optional[list[TableSeats]]:
    """Ищет комбинацию из 2..max_tables столов на target_capacity мест.

    Сначала перебираются все пары, затем тройки. Внутри одного размера
    комбинации идут в лексикографическом порядке индексов, поэтому
    результат определяется порядком входного списка: побеждает первая
    найденная комбинация, а не та, что тратит меньше мест.

    Args:
        tables: Кандидаты в порядке, заданном вызывающим кодом.
        target_capacity: Сколько мест нужно набрать.
        max_tables: Максимальный размер комбинации.

    Returns:
        Список столов комбинации или None, если набрать места нельзя.
        Одиночный стол никогда не возвращается.

    """
    upper = min(max_tables, len(tables))
    for size in range(MIN_COMBINED_TABLES, upper + 1):
        for candidate in combinations(tables, size):
            if sum(table.capacity for table in candidate) >= target_capacity:
                return list(candidate)
    return None

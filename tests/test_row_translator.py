from __future__ import annotations

import unittest

from app.domain.errors import RowWidthError
from app.mappers.column_mapper import build_engine_config
from app.mappers.row_translator import RowTranslator


def _translator() -> RowTranslator:
    return RowTranslator(
        build_engine_config(
            id_columns="0,1",
            data_columns="10,11,12,13",
            data_suffixes="HighAlert,HighWarning,LowWarning,LowAlert",
        )
    )


class TestRowTranslator(unittest.TestCase):
    def setUp(self) -> None:
        self.translator = _translator()

    def test_base_tag_joins_raw_id_columns(self) -> None:
        columns = RowTranslator.split_line(" Sub 1 ,Dev,,,,,,,,,1,2,3,4")
        translation = self.translator.translate(columns, 1)

        self.assertEqual(translation.base_tag, " Sub 1 .Dev")
        self.assertEqual(translation.point_name(translation.slots[0]), " Sub 1 .Dev.HighAlert")

    def test_slots_follow_configured_columns_and_suffixes(self) -> None:
        columns = RowTranslator.split_line("A,B,,,,,,,,,10,NaN,-20,")
        translation = self.translator.translate(columns, 1)

        self.assertEqual(
            [(slot.suffix, slot.raw_value, slot.column_index) for slot in translation.slots],
            [
                ("HighAlert", "10", 10),
                ("HighWarning", "NaN", 11),
                ("LowWarning", "-20", 12),
                ("LowAlert", "", 13),
            ],
        )

    def test_sequence_index_is_positional(self) -> None:
        columns = RowTranslator.split_line("A,B,,,,,,,,,1,2,3,4")

        first = self.translator.translate(columns, 1)
        third = self.translator.translate(columns, 3)

        self.assertEqual([slot.sequence_index for slot in first.slots], [1, 2, 3, 4])
        self.assertEqual([slot.sequence_index for slot in third.slots], [9, 10, 11, 12])

    def test_translation_is_deterministic(self) -> None:
        columns = RowTranslator.split_line("A,B,,,,,,,,,1,2,3,4")
        self.assertEqual(self.translator.translate(columns, 2), self.translator.translate(columns, 2))

    def test_narrow_row_raises_row_width_error(self) -> None:
        with self.assertRaises(RowWidthError) as ctx:
            self.translator.translate(RowTranslator.split_line("A,B,1"), 4)

        self.assertEqual(ctx.exception.row_number, 4)
        self.assertEqual(ctx.exception.column_count, 3)
        self.assertEqual(ctx.exception.required_columns, 14)
        self.assertIn("Not enough columns in CSV row 4", str(ctx.exception))

    def test_split_does_not_interpret_quotes(self) -> None:
        self.assertEqual(RowTranslator.split_line('"a,b",c'), ['"a', 'b"', "c"])


if __name__ == "__main__":
    unittest.main()

# carvecore

Building blocks for the controller of a small three-axis CNC carving machine. The package is pure Python and has no runtime dependencies.

It contains:

- `carvecore.gcode_words`: `parse_block(line, modal)` reads one line of RS274/NGC G-code into a `ParsedBlock`. The line holds upper-case letters and numbers, with no spaces. The block records command words, value words, and bit masks of the words that appeared. `read_number(line, pos)` reads one signed decimal number. Both raise `GCodeError` on malformed words and unsupported commands. `parse_block` also raises it on modal group violations and repeated words.
- `carvecore.gcode_check`: `check_block(parsed, state, store)` checks a parsed block against a `ParserState` and returns a `CheckedBlock`. The returned block has its units converted to millimetres. It also has coordinate systems, G92 offsets, tool length offsets, G28/G30 positions and arc centres worked out. `CoordinateStore` holds the G54–G59 work coordinate systems and the G28/G30 home positions in memory.
- `carvecore.motion`: `MotionControl` hands lines to a planner callable. It also does arcs as short chords, dwells, and jog moves, and can check soft limits. `arc_points` yields the chord end points of an arc. `PlanLineData` carries the feed rate, spindle speed and condition flags of each line.
- `carvecore.modes`: the modal enums, word and flag definitions, and `GCodeError` with its status codes. It also has the `Modal`, `Values` and `ParserState` dataclasses and `plane_axes`.
- `carvecore.coolant`: `CoolantControl` drives the flood output and an optional mist output, with optional pin inversion.
- `carvecore.eeprom`: `Eeprom` is a simulated byte EEPROM. It chooses an erase/write programming mode for each byte (`ProgramMode`). It also copies blocks with and without a checksum, and raises `ChecksumError` on a checksum mismatch.
- `carvecore.pwm`: `PwmChannel` models LED and spindle outputs that fade or throb one level per timer tick. `hardware_rev` decodes the board revision. `format_switch_states` formats the switch report line.
- `carvecore.tmc26x`: builds the 20-bit TMC26x configuration words (`chopconf`, `smarten`, `sgsconf`, `drvconf`, `drvctrl`). `DriverChain` programs the X, Y and Z drivers through a send function you supply, and reads the stallGuard2 load value back.

## Installing

```
pip install .
```

To install with the test dependencies and run the tests:

```
pip install .[test]
pytest
```

## Library use

```python
from carvecore.gcode_check import CoordinateStore, check_block
from carvecore.gcode_words import parse_block
from carvecore.modes import GCodeError, ParserState
from carvecore.motion import MotionControl, PlanLineData

state = ParserState()
store = CoordinateStore()

parsed = parse_block("G21G90G1X10Y5F500", state.modal)
checked = check_block(parsed, state, store)   # checked.values.xyz == [10.0, 5.0, 0.0]

moves = []
motion = MotionControl(planner=lambda target, data: moves.append(tuple(target)))
motion.line(checked.values.xyz, PlanLineData(feed_rate=checked.values.f))
```

A block that fails parsing or checking raises `GCodeError`. Its `code` attribute holds the numeric status. `check_block` does not change the parsed block or the parser state.

Driver register words can be built directly:

```python
from carvecore import tmc26x

word = tmc26x.drvctrl(interpol=False, double_edge=False, microstep_mode=16)
```

## What the package does not do

The package parses and checks blocks, but nothing in it applies a `CheckedBlock` to a `ParserState`. The modal state, position, offsets and spindle and coolant changes are left for the caller to carry forward and pass to `MotionControl`. It has no command-line program. It has no motion planner or stepper timing beyond the planner callable you supply. There is no serial protocol, and no persistent storage: `CoordinateStore` and `Eeprom` live in memory only.
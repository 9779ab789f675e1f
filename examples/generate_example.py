"""Generate example .grif files to see what both dialects look like."""

import sys
sys.path.insert(0, str(__import__("pathlib").Path(__file__).parent.parent))

from grif.document import GRIFDocument
from grif.writer import GRIFWriter

doc = GRIFDocument.from_mapping({
    "title": "The Kitchen Adventure",
    "room.1.name": "Kitchen",
    "room.1.desc": "A small kitchen. A kettle simmers on the stove.",
    "room.1.exit.north": "2",
    "room.2.name": "Hallway",
    "room.2.desc": "A long hallway.\nPortraits line the walls.",
    "room.10.name": "Cellar",
    "item.*.weight": "1",
    "item.1.name": "Lamp",
    "item.2.name": "Key",
    "script.look": (
        '@if @eq(player.room,1) @then @write("Smells good.") '
        '@else @write("Nothing here.") @endif'
    ),
    "script.inventory": "@for(i,1,2) @write(item.#.name) @endfor",
})

here = __import__("pathlib").Path(__file__).parent
for name, json_mode in (("hello.grif", False), ("hello.json.grif", True)):
    output = here / name
    nbytes = GRIFWriter.write(output, doc, json_mode=json_mode)
    print(f"Wrote {output} ({nbytes} bytes)")

print()
print((here / "hello.grif").read_text(encoding="utf-8"))

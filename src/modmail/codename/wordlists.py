"""Fixed vocabularies for codenames. Entries must be unique, lowercase and space-free."""

ADJECTIVES = (
    "agile", "amber", "ancient", "arctic", "autumn", "azure", "bold", "brave",
    "breezy", "bright", "brisk", "bronze", "calm", "careful", "cheerful", "clever",
    "coastal", "cosmic", "cozy", "crimson", "curious", "dapper", "daring", "dawn",
    "distant", "dreamy", "dusky", "eager", "early", "earnest", "electric", "emerald",
    "endless", "fearless", "festive", "fluffy", "friendly", "gentle", "gilded", "glad",
    "golden", "graceful", "grand", "hazy", "hidden", "honest", "humble", "icy",
    "indigo", "jolly", "keen", "kind", "lively", "lucky", "lunar", "mellow",
    "merry", "misty", "modest", "mossy", "nimble", "noble", "oaken", "patient",
    "peaceful", "plucky", "polite", "proud", "quiet", "quick", "radiant", "rapid",
    "rustic", "sandy", "scarlet", "serene", "shy", "silent", "silver", "sleepy",
    "smooth", "snowy", "solar", "spry", "steady", "stormy", "sturdy", "sunny",
    "swift", "tender", "thrifty", "tidy", "tranquil", "velvet", "vivid", "wandering",
    "warm", "whimsical", "wise", "witty", "young", "zesty",
)

NOUNS = (
    "albatross", "alpaca", "antelope", "armadillo", "badger", "barracuda", "beaver", "bison",
    "bonefish", "buffalo", "butterfly", "camel", "capybara", "caribou", "cheetah", "chinchilla",
    "cobra", "condor", "cormorant", "coyote", "crane", "cricket", "dingo", "dolphin",
    "dormouse", "dragonfly", "eagle", "egret", "elk", "falcon", "ferret", "finch",
    "flamingo", "fox", "gazelle", "gecko", "gibbon", "giraffe", "gopher", "grouse",
    "hamster", "hare", "hedgehog", "heron", "hornet", "ibis", "iguana", "jackal",
    "jaguar", "kestrel", "kingfisher", "koala", "lemur", "leopard", "lynx", "macaw",
    "magpie", "manatee", "marmot", "meerkat", "mongoose", "moose", "narwhal", "newt",
    "ocelot", "octopus", "opossum", "orca", "osprey", "otter", "owl", "panda",
    "panther", "parrot", "pelican", "penguin", "pheasant", "platypus", "puffin", "quail",
    "rabbit", "raccoon", "raven", "reindeer", "robin", "salamander", "seal", "sparrow",
    "squirrel", "starling", "stingray", "swan", "tapir", "tortoise", "toucan", "walrus",
    "weasel", "wombat", "wren", "yak", "zebra",
)

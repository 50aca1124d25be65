CHANNEL = "implementors"

MAPPING = {
    "fornjot_host": [
        {"text": "impl PartialEq<Metadata> for Metadata", "synthetic": False, "types": ["host::model_v1::Metadata"]},
        {"text": "impl PartialEq<LogLevel> for LogLevel", "synthetic": False, "types": ["host::fornjot_v1::LogLevel"]},
    ],
    "wit_parser": [
        {"text": "impl PartialEq<Type> for Type", "synthetic": False, "types": ["wit_parser::Type"]},
    ],
}

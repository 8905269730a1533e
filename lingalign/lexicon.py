"""
Function-word dictionary used by the "lsm" preset.

Nine style categories over common English function words. Entries ending
in "*" match any term with that prefix.
"""

from typing import Dict, List

FUNCTION_WORDS: Dict[str, List[str]] = {
    "ppron": [
        "i", "me", "my", "mine", "myself", "we", "us", "our", "ours", "ourselves",
        "you", "your", "yours", "yourself", "yourselves", "he", "him", "his",
        "himself", "she", "her", "hers", "herself", "they", "them", "their",
        "theirs", "themselves", "i'm", "i've", "i'll", "i'd", "we're", "we've",
        "you're", "you've", "he's", "she's", "they're", "they've",
    ],
    "ipron": [
        "it", "its", "itself", "it's", "that", "this", "these", "those",
        "anybody", "anyone", "anything", "everybody", "everyone", "everything",
        "nobody", "nothing", "somebody", "someone", "something", "what",
        "which", "who", "whom", "whose", "whatever", "whoever",
    ],
    "article": ["a", "an", "the"],
    "auxverb": [
        "am", "is", "are", "was", "were", "be", "been", "being", "have", "has",
        "had", "having", "do", "does", "did", "will", "would", "shall", "should",
        "can", "could", "may", "might", "must", "ought",
    ],
    "adverb": [
        "very", "really", "just", "so", "too", "quite", "rather", "also",
        "again", "already", "almost", "always", "often", "sometimes", "never",
        "here", "there", "now", "then", "even", "still", "yet", "only", "how",
        "when", "where", "why", "actually", "probably", "definitely",
    ],
    "prep": [
        "about", "above", "across", "after", "against", "along", "among",
        "around", "at", "before", "behind", "below", "beneath", "beside",
        "between", "beyond", "by", "despite", "down", "during", "for", "from",
        "in", "inside", "into", "near", "of", "off", "on", "onto", "out",
        "outside", "over", "past", "since", "through", "throughout", "to",
        "toward*", "under", "until", "up", "upon", "with", "within", "without",
    ],
    "conj": [
        "and", "but", "or", "nor", "because", "although", "though", "while",
        "whereas", "unless", "if", "as", "whether", "either", "neither",
        "also", "plus", "otherwise",
    ],
    "negate": [
        "no", "not", "never", "none", "nor", "neither", "nope", "nothing",
        "n't", "don't", "doesn't", "didn't", "isn't", "aren't", "wasn't",
        "weren't", "won't", "wouldn't", "can't", "cannot", "couldn't",
        "shouldn't", "haven't", "hasn't", "hadn't",
    ],
    "quant": [
        "all", "any", "both", "each", "every", "few", "fewer", "less", "lot*",
        "many", "more", "most", "much", "several", "some", "enough", "half",
        "whole", "plenty", "numerous",
    ],
}

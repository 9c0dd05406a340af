import json

import requests

url = "http://127.0.0.1:5000/"

sequence = "GGGGAAAAAAACCCCUUUUUUU"
structure = "((((...[[[[))))...]]]]"


def request_parse(base_url=url, timeout=10):
    """Sends the example pseudoknot to ``/parse_structure`` and returns the decoded response."""
    payload = {"sequence": sequence, "structure": structure}
    response = requests.post(base_url + "parse_structure", json=payload, timeout=timeout)
    # Raise an exception for bad status codes (4xx or 5xx)
    response.raise_for_status()
    return response.json()


def request_layout(base_url=url, params=None, timeout=30):
    """Sends the example pseudoknot to ``/layout`` and returns the decoded response."""
    payload = {
        "sequence": sequence,
        "structure": structure,
        "params": params or {"pair_distance": 30, "charge_strength": -200},
    }
    response = requests.post(base_url + "layout", json=payload, timeout=timeout)
    response.raise_for_status()
    return response.json()


if __name__ == "__main__":
    try:
        print(json.dumps(request_parse(), indent=2))
        print(json.dumps(request_layout(), indent=2))
    except requests.exceptions.RequestException as e:
        print(f"An error occurred: {e}")

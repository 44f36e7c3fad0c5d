# scripts/generate_api_key.py

from daycare.core.security import generate_api_key


def main():
    """
    Prints a new 32-byte API key.
    The same value goes into API_KEY of the backend .env and into the form relay settings.
    """
    api_key = generate_api_key()

    print("Generated API key:")
    print(api_key)
    print("")
    print("Set this value as API_KEY in the backend .env file.")
    print("Property name: API_KEY")
    print(f"Value: {api_key}")


if __name__ == '__main__':
    main()

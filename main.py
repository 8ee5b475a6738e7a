from dotenv import load_dotenv
load_dotenv()

import sys

from lineage.rag_server import RAGServer

def main():
    """
    Starts the RAG server and answers questions from the console until 'exit'.
    """
    server = RAGServer().start()
    health = server.health()
    print(f"Status: {health.status.value} - {health.detail}")
    if server.ready():
        print("Try questions like:")
        print("   - 'Tell me about Jane Doe'")
        print("   - 'Who are the children of John Doe?'")
        print("   - 'How is Alice Doe related to Peter Smith?'")

    try:
        while True:
            try:
                question = input("\nEnter your query (or 'exit' to exit): ").strip()
            except EOFError:
                break
            if question == "exit":
                print("Goodbye!")
                break
            if not question:
                print("Please enter a valid query.")
                continue
            print(f"\n{server.ask(question)}")
    finally:
        server.shutdown()

if __name__ == "__main__":
    sys.exit(main())
